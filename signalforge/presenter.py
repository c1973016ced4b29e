"""SignalPresenter — map result records to camelCase transport payloads.

Enum members render as their verbatim values (``OVERSOLD``,
``STRONG_BUY``, ``CHoCH``...), datetimes as ISO-8601 strings and absent
optionals as ``None``.  Signal metadata dicts are passed through with their
keys untouched.
"""

from dataclasses import fields, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from signalforge.analysis import AnalysisReport
from signalforge.indicators.catalog import ComprehensiveAnalysis
from signalforge.smc.models import SmartMoneyResult
from signalforge.strategy.base import StrategyResult, StrategySignal
from signalforge.strategy.consensus import ConsensusResult

_KEY_OVERRIDES = {
    "stoch_rsi": "stochRSI",
}


def camel_case(name: str) -> str:
    if name in _KEY_OVERRIDES:
        return _KEY_OVERRIDES[name]
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_payload(value: Any) -> Any:
    """Recursively convert dataclasses, enums, datetimes and containers."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return {camel_case(f.name): to_payload(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {k: to_payload(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_payload(v) for v in value]
    return value


def present_indicators(results: dict[str, Any]) -> dict[str, Any]:
    return {camel_case(name): to_payload(result) for name, result in results.items()}


def present_signal(signal: Optional[StrategySignal]) -> Optional[dict]:
    if signal is None:
        return None
    return {
        "type": signal.type.value,
        "price": signal.price,
        "confidence": signal.confidence,
        "stopLoss": signal.stop_loss,
        "takeProfit": signal.take_profit,
        "reasoning": signal.reasoning,
        "metadata": dict(signal.metadata),
    }


def present_strategy(result: StrategyResult) -> dict:
    return {
        "strategyName": result.strategy_name,
        "signal": present_signal(result.signal),
        "shouldExit": result.should_exit,
        "analysis": result.analysis,
    }


def present_consensus(result: ConsensusResult) -> dict:
    return {
        "symbol": result.symbol,
        "timeframe": result.timeframe,
        "strategies": {
            name: present_strategy(r) for name, r in result.strategies.items()
        },
        "consensus": result.consensus.value,
        "agreementRate": result.agreement_rate,
        "confidence": result.confidence,
    }


def present_smart_money(result: SmartMoneyResult) -> dict:
    """The SMC bundle: blocks, gaps, sweeps, latest structure change, POC, value area."""
    return {
        "orderBlocks": to_payload(result.order_blocks),
        "fairValueGaps": to_payload(result.fair_value_gaps),
        "liquiditySweeps": to_payload(result.liquidity_sweeps),
        "structureChange": to_payload(result.structure_change),
        "structureChanges": to_payload(result.structure_changes),
        "poc": result.poc,
        "valueAreaHigh": result.value_area_high,
        "valueAreaLow": result.value_area_low,
    }


def present_comprehensive(analysis: Optional[ComprehensiveAnalysis]) -> Optional[dict]:
    if analysis is None:
        return None
    return to_payload(analysis)


def present_report(report: AnalysisReport) -> dict:
    return {
        "symbol": report.symbol,
        "timeframe": report.timeframe,
        "timestamp": report.timestamp.isoformat(),
        "price": report.price,
        "indicators": present_indicators(report.indicators),
        "indicatorFailures": present_indicators(report.indicator_failures),
        "comprehensive": present_comprehensive(report.comprehensive),
        "consensus": present_consensus(report.consensus),
        "smartMoney": present_smart_money(report.smart_money),
    }
