# -*- coding: utf-8 -*-
"""
RSI Divergence Detection
========================

고정 지연(lookback) 피벗 기반 RSI/가격 다이버전스 감지.

Types:
- Bullish: 가격 Lower Low + RSI Higher Low (oversold 영역) → 반등 신호
- Bearish: 가격 Higher High + RSI Lower High (overbought 영역) → 하락 신호

피벗 p = current_index - lookback. 항상 lookback 봉 늦게 보고됨 (실시간 신호 아님).
비교 대상 = p - comparison_offset. 봉당 1회, 전진 단방향 평가 (지난 피벗 재평가 없음).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Sequence

from ..errors import InvalidConfiguration

logger = logging.getLogger(__name__)

# 차트 마커 위치 (RSI 아래/위)
MARKER_OFFSET = 5.0


class DivergenceKind(Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"


@dataclass(frozen=True)
class DivergenceEvent:
    """다이버전스 감지 결과"""
    pivot_bar_index: int
    kind: DivergenceKind
    price_extreme: float  # 피벗 저가(Bullish) / 고가(Bearish)
    indicator_extreme: float  # 피벗 RSI
    reference_bar_index: int
    detected_at_bar: int

    @property
    def lag(self) -> int:
        return self.detected_at_bar - self.pivot_bar_index

    @property
    def marker_value(self) -> float:
        if self.kind is DivergenceKind.BULLISH:
            return self.indicator_extreme - MARKER_OFFSET
        return self.indicator_extreme + MARKER_OFFSET


class PriceHistory(Protocol):
    """절대 인덱스로 접근 가능한 저가/고가 히스토리"""
    lows: Sequence[float]
    highs: Sequence[float]


def _check_gate(name: str, value: float) -> float:
    if not 0.0 <= value <= 100.0:
        raise InvalidConfiguration(f"{name} must be in [0, 100], got {value!r}")
    return float(value)


class DivergenceDetector:
    """
    지연 피벗 다이버전스 감지기

    Args:
        lookback: 확인 지연 L (>= 1)
        comparison_offset: 비교 거리 D (>= 1)
        oversold_gate: Bullish 허용 RSI 상한
        overbought_gate: Bearish 허용 RSI 하한
    """

    def __init__(
        self,
        lookback: int = 5,
        comparison_offset: int = 10,
        oversold_gate: float = 35.0,
        overbought_gate: float = 65.0,
    ):
        self.configure(lookback, comparison_offset, oversold_gate, overbought_gate)

    def configure(
        self,
        lookback: int,
        comparison_offset: int,
        oversold_gate: float,
        overbought_gate: float,
    ):
        if isinstance(lookback, bool) or lookback < 1:
            raise InvalidConfiguration(f"divergence lookback must be >= 1, got {lookback!r}")
        if isinstance(comparison_offset, bool) or comparison_offset < 1:
            raise InvalidConfiguration(
                f"divergence comparison_offset must be >= 1, got {comparison_offset!r}"
            )
        self.lookback = int(lookback)
        self.comparison_offset = int(comparison_offset)
        self.oversold_gate = _check_gate("oversold_gate", oversold_gate)
        self.overbought_gate = _check_gate("overbought_gate", overbought_gate)
        self.reset()

    def reset(self):
        self._last_pivot = -1

    @property
    def min_history(self) -> int:
        """이벤트 가능 최소 봉 수 (L + D + 1)"""
        return self.lookback + self.comparison_offset + 1

    def on_bar(
        self,
        price_history: PriceHistory,
        rsi_history: Sequence[float],
        current_index: int,
    ) -> Optional[DivergenceEvent]:
        """
        현재 봉 기준 피벗 1개 평가

        Args:
            price_history: .lows / .highs (절대 인덱스)
            rsi_history: RSI (절대 인덱스)
            current_index: 현재 봉 인덱스

        Returns:
            DivergenceEvent or None
        """
        pivot = current_index - self.lookback
        ref = pivot - self.comparison_offset

        if ref < 0 or pivot <= self._last_pivot:
            return None
        self._last_pivot = pivot

        try:
            rsi_p = rsi_history[pivot]
            rsi_ref = rsi_history[ref]
            low_p, low_ref = price_history.lows[pivot], price_history.lows[ref]
            high_p, high_ref = price_history.highs[pivot], price_history.highs[ref]
        except IndexError:
            # 버퍼 밖 = 히스토리 부족
            logger.debug(f"Divergence pivot {pivot} outside retained history")
            return None

        # Bullish: 가격 LL + RSI HL + oversold
        if low_p < low_ref and rsi_p > rsi_ref and rsi_p < self.oversold_gate:
            return DivergenceEvent(
                pivot_bar_index=pivot,
                kind=DivergenceKind.BULLISH,
                price_extreme=low_p,
                indicator_extreme=rsi_p,
                reference_bar_index=ref,
                detected_at_bar=current_index,
            )

        # Bearish: 가격 HH + RSI LH + overbought
        if high_p > high_ref and rsi_p < rsi_ref and rsi_p > self.overbought_gate:
            return DivergenceEvent(
                pivot_bar_index=pivot,
                kind=DivergenceKind.BEARISH,
                price_extreme=high_p,
                indicator_extreme=rsi_p,
                reference_bar_index=ref,
                detected_at_bar=current_index,
            )

        return None
