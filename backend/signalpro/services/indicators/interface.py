"""
Indicator Engine Service Interface

Defines the contract for the indicator calculation layer.
"""

from abc import abstractmethod
from typing import Optional, Sequence

from signalpro.services.base import BaseService
from signalpro.schemas.market import OHLCV
from signalpro.schemas.indicators import IndicatorResultSet


class IndicatorServiceInterface(BaseService[Sequence[OHLCV], Optional[IndicatorResultSet]]):
    """
    Indicator Engine Service Contract.

    INPUT: list[OHLCV]
        - Ascending daily bars, at least 50 of them

    OUTPUT: IndicatorResultSet or None
        - None means insufficient history, not a failure
    """

    @property
    def name(self) -> str:
        return "IndicatorService"

    @abstractmethod
    def calculate_all_indicators(
        self, series: Sequence[OHLCV]
    ) -> Optional[IndicatorResultSet]:
        """Synchronous entry point; indicator math never awaits."""
        pass
