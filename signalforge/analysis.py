"""AnalysisService — one full analysis per (symbol, timeframe) series.

Runs the indicator catalog, the consensus engine and the smart-money
detector over the same snapshot and bundles the results.  Many series can
be analysed concurrently with :meth:`AnalysisService.analyze_many`; each
analysis runs in a worker thread and the fan-out is bounded by
``max_workers``.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from signalforge.config import Config
from signalforge.indicators.catalog import (
    ComprehensiveAnalysis,
    comprehensive_analysis,
    compute_indicators,
)
from signalforge.market.models import CandleSeries
from signalforge.smc.detector import SmartMoneyDetector
from signalforge.smc.models import SmartMoneyConfig, SmartMoneyResult
from signalforge.strategy.base import StrategyProtocol
from signalforge.strategy.consensus import ConsensusEngine, ConsensusResult
from signalforge.strategy.registry import default_strategies
from signalforge.strategy.smart_money import SmartMoneyStrategy

logger = logging.getLogger("signalforge.analysis")


@dataclass(frozen=True)
class AnalysisReport:
    symbol: str
    timeframe: str
    timestamp: datetime  # latest candle
    price: float
    indicators: dict[str, Any]
    indicator_failures: dict[str, str]
    comprehensive: Optional[ComprehensiveAnalysis]
    consensus: ConsensusResult
    smart_money: SmartMoneyResult


class AnalysisService:
    """Stateless orchestrator over the indicator, consensus and SMC layers.

    Args:
        smc_config:  Detector tunables; defaults to ``SmartMoneyConfig()``.
        strategies:  Ordered strategy map; defaults to the full registry,
                     with the smart-money strategy sharing this detector.
        max_workers: Upper bound on concurrent analyses in ``analyze_many``.
    """

    def __init__(
        self,
        smc_config: Optional[SmartMoneyConfig] = None,
        strategies: Optional[Mapping[str, StrategyProtocol]] = None,
        max_workers: int = 4,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self._detector = SmartMoneyDetector(smc_config)
        if strategies is None:
            strategies = default_strategies()
            strategies["SMART_MONEY"] = SmartMoneyStrategy(self._detector)
        self._consensus = ConsensusEngine(strategies)
        self._max_workers = max_workers

    @classmethod
    def from_config(cls, config: Config) -> "AnalysisService":
        return cls(
            smc_config=config.smart_money_config(),
            max_workers=config.analysis_max_workers,
        )

    def analyze(self, series: CandleSeries) -> AnalysisReport:
        """Analyse one series.  Indicator failures are reported, not raised."""
        catalog = compute_indicators(series)
        report = AnalysisReport(
            symbol=series.symbol,
            timeframe=series.timeframe,
            timestamp=series.last.timestamp,
            price=series.last.close,
            indicators=catalog.results,
            indicator_failures=catalog.failures,
            comprehensive=comprehensive_analysis(catalog),
            consensus=self._consensus.evaluate(series),
            smart_money=self._detector.scan(series),
        )
        logger.info(
            "Analysed %s %s: %d indicators, %d skipped, consensus %s",
            series.symbol,
            series.timeframe,
            len(catalog.results),
            len(catalog.failures),
            report.consensus.consensus.value,
        )
        return report

    async def analyze_many(self, series_list: Iterable[CandleSeries]) -> list[AnalysisReport]:
        """Analyse independent series concurrently, preserving input order."""
        semaphore = asyncio.Semaphore(self._max_workers)

        async def _run(series: CandleSeries) -> AnalysisReport:
            async with semaphore:
                return await asyncio.to_thread(self.analyze, series)

        return list(await asyncio.gather(*(_run(s) for s in series_list)))
