# -*- coding: utf-8 -*-
"""
Streaming RSI Engine
====================

봉 단위 증분 RSI + RSI 이동평균/볼린저 + 가격 볼린저 밴드.

RSI (Wilder RMA, TradingView Pine 방식):
1. 첫 봉: RSI = 50 (중립), 누적값 갱신 없음
2. 두 번째 봉: 누적값을 raw gain/loss로 시드 (블렌딩 없음)
3. 이후: s = alpha * x + (1 - alpha) * s, alpha = 1 / period

두 번째 봉 raw 시드는 초반 RSI 값을 크게 바꾸므로 순수 Wilder 초기화로 바꾸지 말 것.

RSI 스무딩 (ma_type != NONE):
- 최근 ma_length개 RSI 윈도우가 찰 때까지 MA/밴드 = None
- MA = 윈도우 산술평균 (모든 ma_type 공통)
- SMA_BB: mean ± mult * 모표준편차

가격 볼린저 밴드 (평균회귀 정책용):
- 최근 price_band_length개 종가, talib.BBANDS (SMA, 모표준편차)

사용법:
```python
from sniper.anchor.rsi import IndicatorEngine, MAType

engine = IndicatorEngine(14, ma_type=MAType.SMA_BB, ma_length=14)
engine.warm_up(history_df)
snap = engine.update(bar)
print(snap.rsi, snap.ma_value, snap.upper_band)
```
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Union

import numpy as np
import pandas as pd
import talib

from ..data.bars import PriceBar, iter_bars
from ..errors import InvalidConfiguration
from ..utils.ring_buffer import RingBuffer

logger = logging.getLogger(__name__)

NEUTRAL_RSI = 50.0
DEFAULT_HISTORY_SIZE = 256


class MAType(Enum):
    """RSI 스무딩 종류"""
    NONE = "none"
    SMA = "sma"
    SMA_BB = "sma_bb"  # SMA + Bollinger Bands
    EMA = "ema"
    SMMA = "smma"
    WMA = "wma"

    @property
    def has_bands(self) -> bool:
        return self is MAType.SMA_BB

    @classmethod
    def parse(cls, value: Union["MAType", str]) -> "MAType":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace('+', '_').replace('-', '_')
        aliases = {'sma_bands': 'sma_bb', 'bb': 'sma_bb', 'rma': 'smma'}
        key = aliases.get(key, key)
        for member in cls:
            if member.value == key:
                return member
        raise InvalidConfiguration(
            f"Unknown ma_type: {value!r}. Valid: {[m.value for m in cls]}"
        )


@dataclass
class RSIState:
    """RSI 누적 상태 (인스턴스별 소유)"""
    period: int
    smoothed_gain: float = 0.0
    smoothed_loss: float = 0.0
    bars_seen: int = 0
    prev_close: Optional[float] = None

    def update(self, close: float) -> float:
        """종가 1개 반영 후 RSI 반환"""
        if self.bars_seen == 0:
            self.prev_close = close
            self.bars_seen = 1
            return NEUTRAL_RSI

        change = close - self.prev_close
        gain = change if change > 0 else 0.0
        loss = -change if change < 0 else 0.0

        if self.bars_seen == 1:
            # raw 시드
            self.smoothed_gain = gain
            self.smoothed_loss = loss
        else:
            alpha = 1.0 / self.period
            self.smoothed_gain = alpha * gain + (1.0 - alpha) * self.smoothed_gain
            self.smoothed_loss = alpha * loss + (1.0 - alpha) * self.smoothed_loss

        self.prev_close = close
        self.bars_seen += 1
        return self.value()

    def value(self) -> float:
        if self.bars_seen < 2:
            return NEUTRAL_RSI
        if self.smoothed_loss == 0:
            return 100.0
        if self.smoothed_gain == 0:
            return 0.0
        return 100.0 - 100.0 / (1.0 + self.smoothed_gain / self.smoothed_loss)


@dataclass(frozen=True)
class IndicatorSnapshot:
    """봉 1개의 지표 값 (None = Unavailable)"""
    bar_index: int
    close: float
    rsi: float
    ma_value: Optional[float] = None
    upper_band: Optional[float] = None
    lower_band: Optional[float] = None
    # 가격 볼린저 밴드
    price_middle: Optional[float] = None
    price_upper: Optional[float] = None
    price_lower: Optional[float] = None

    @property
    def has_bands(self) -> bool:
        return self.upper_band is not None and self.lower_band is not None

    @property
    def has_price_bands(self) -> bool:
        return self.price_middle is not None


def _require_positive(name: str, value) -> None:
    if isinstance(value, bool) or value <= 0:
        raise InvalidConfiguration(f"{name} must be > 0, got {value!r}")


class IndicatorEngine:
    """
    증분 지표 엔진

    (instrument, timeframe, strategy) 당 1개. 모든 누적 상태는 인스턴스 필드.
    lows/highs/closes/rsi_values: 다이버전스 감지용 절대 인덱스 링 버퍼.
    """

    def __init__(
        self,
        period: int = 14,
        *,
        ma_type: Union[MAType, str] = MAType.SMA,
        ma_length: int = 14,
        bb_multiplier: float = 2.0,
        price_band_length: int = 20,
        price_band_multiplier: float = 2.0,
        history_size: int = DEFAULT_HISTORY_SIZE,
    ):
        _require_positive("rsi period", period)
        _require_positive("ma_length", ma_length)
        _require_positive("bb_multiplier", bb_multiplier)
        _require_positive("price_band_multiplier", price_band_multiplier)
        _require_positive("history_size", history_size)
        if price_band_length < 2:
            # talib BBANDS timeperiod >= 2
            raise InvalidConfiguration(
                f"price_band_length must be >= 2, got {price_band_length!r}"
            )

        self.period = int(period)
        self.ma_type = MAType.parse(ma_type)
        self.ma_length = int(ma_length)
        self.bb_multiplier = float(bb_multiplier)
        self.price_band_length = int(price_band_length)
        self.price_band_multiplier = float(price_band_multiplier)
        self.history_size = max(int(history_size), self.ma_length, self.price_band_length)

        self._reset()

    def _reset(self):
        self.state = RSIState(period=self.period)
        self._rsi_window = RingBuffer(self.ma_length)
        self._close_window = RingBuffer(self.price_band_length)

        self.lows = RingBuffer(self.history_size)
        self.highs = RingBuffer(self.history_size)
        self.closes = RingBuffer(self.history_size)
        self.rsi_values = RingBuffer(self.history_size)

        self.bar_index = -1
        self.last_snapshot: Optional[IndicatorSnapshot] = None

    @property
    def bars_seen(self) -> int:
        return self.state.bars_seen

    def warm_up(
        self,
        history: Union[pd.DataFrame, Iterable[PriceBar]],
    ) -> List[IndicatorSnapshot]:
        """
        과거 봉 재생으로 상태 재구성 (신호/다이버전스 없음)

        기존 상태는 버리고 처음부터 재생하므로 같은 history에 대해 멱등.

        Returns:
            봉별 스냅샷 리스트
        """
        self._reset()
        snapshots = [self.update(bar) for bar in iter_bars(history)]
        logger.debug(
            f"Warm-up complete: {len(snapshots)} bars, "
            f"rsi={self.state.value():.2f}"
        )
        return snapshots

    def update(self, bar: PriceBar) -> IndicatorSnapshot:
        """새 봉 1개 반영"""
        self.bar_index += 1
        is_first = self.state.bars_seen == 0
        rsi = self.state.update(bar.close)

        ma_value = upper = lower = None
        if self.ma_type is not MAType.NONE and not is_first:
            # 첫 봉의 중립값(50)은 윈도우에 넣지 않음
            self._rsi_window.append(rsi)
            if self._rsi_window.is_full:
                ma_value, upper, lower = self._rsi_envelope()

        self._close_window.append(bar.close)
        price_middle, price_upper, price_lower = self._price_envelope()

        self.lows.append(bar.low)
        self.highs.append(bar.high)
        self.closes.append(bar.close)
        self.rsi_values.append(rsi)

        snapshot = IndicatorSnapshot(
            bar_index=self.bar_index,
            close=bar.close,
            rsi=rsi,
            ma_value=ma_value,
            upper_band=upper,
            lower_band=lower,
            price_middle=price_middle,
            price_upper=price_upper,
            price_lower=price_lower,
        )
        self.last_snapshot = snapshot
        return snapshot

    def _rsi_envelope(self):
        window = self._rsi_window.values()
        mean = float(np.mean(window))
        if not self.ma_type.has_bands:
            return mean, None, None
        std = float(np.std(window))  # ddof=0 (모표준편차)
        return mean, mean + self.bb_multiplier * std, mean - self.bb_multiplier * std

    def _price_envelope(self):
        if not self._close_window.is_full:
            return None, None, None
        upper, middle, lower = talib.BBANDS(
            self._close_window.values(),
            timeperiod=self.price_band_length,
            nbdevup=self.price_band_multiplier,
            nbdevdn=self.price_band_multiplier,
            matype=0,
        )
        return float(middle[-1]), float(upper[-1]), float(lower[-1])
