"""Strategy registry — maps strategy names to classes.

Registration order matters: the consensus engine breaks exact ties in
favour of the earliest registered strategy.
"""

from signalforge.strategy.base import StrategyProtocol
from signalforge.strategy.ema_ribbon import EMARibbonStrategy
from signalforge.strategy.macd_rsi import MACDRSIStrategy
from signalforge.strategy.order_flow import OrderFlowStrategy
from signalforge.strategy.rsi_volume import RSIVolumeStrategy
from signalforge.strategy.smart_money import SmartMoneyStrategy


STRATEGY_REGISTRY: dict[str, type] = {
    "SMART_MONEY": SmartMoneyStrategy,
    "ORDER_FLOW": OrderFlowStrategy,
    "RSI_VOLUME": RSIVolumeStrategy,
    "EMA_RIBBON": EMARibbonStrategy,
    "MACD_RSI": MACDRSIStrategy,
}


def get_strategy(name: str) -> StrategyProtocol:
    """Look up and instantiate a strategy by registry key.

    Raises ``KeyError`` if the strategy name is not registered.
    """
    if name not in STRATEGY_REGISTRY:
        raise KeyError(
            f"Unknown strategy '{name}'. "
            f"Available: {', '.join(STRATEGY_REGISTRY.keys())}"
        )
    return STRATEGY_REGISTRY[name]()


def default_strategies() -> dict[str, StrategyProtocol]:
    """Fresh instances of every registered strategy, in registration order."""
    return {name: get_strategy(name) for name in STRATEGY_REGISTRY}
