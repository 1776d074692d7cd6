# -*- coding: utf-8 -*-
"""테스트용 합성 봉 데이터"""
from datetime import datetime, timedelta

import numpy as np
import pandas as pd

from sniper.data.bars import PriceBar
from sniper.execution.gateway import OrderResult


def make_bars(closes, start=datetime(2024, 1, 1), spread=0.5):
    """종가 리스트 → PriceBar 리스트 (15분봉)"""
    return [
        PriceBar(
            timestamp=pd.Timestamp(start + timedelta(minutes=15 * i)),
            open=float(c),
            high=float(c) + spread,
            low=float(c) - spread,
            close=float(c),
            volume=100.0,
        )
        for i, c in enumerate(closes)
    ]


def random_walk(n=500, seed=42, start=100.0):
    rng = np.random.default_rng(seed)
    return start + np.cumsum(rng.normal(0, 1.0, n))


def alternating(n, low=100.0, high=101.0):
    """low/high 교대 (RSI ~ 50 유지)"""
    return [low if i % 2 == 0 else high for i in range(n)]


def generate_mock_data(
    days: int = 10,
    start_price: float = 1.1000,
    volatility: float = 0.01,
    seed: int = 42,
) -> pd.DataFrame:
    """Mock 15분봉 OHLCV 데이터 생성"""
    bars_per_day = 96
    total_bars = days * bars_per_day

    rng = np.random.default_rng(seed)
    returns = rng.normal(0.0, volatility / np.sqrt(bars_per_day), total_bars)
    prices = start_price * np.cumprod(1 + returns)

    return pd.DataFrame({
        'open': prices,
        'high': prices * (1 + rng.uniform(0, volatility / 4, total_bars)),
        'low': prices * (1 - rng.uniform(0, volatility / 4, total_bars)),
        'close': prices,
        'volume': rng.uniform(100, 1000, total_bars),
    }, index=pd.date_range('2024-01-01', periods=total_bars, freq='15min'))


class RecordingGateway:
    """호출 기록용 게이트웨이 (accept=False면 전부 거절)"""

    def __init__(self, accept: bool = True, fail_with: Exception = None):
        self.accept = accept
        self.fail_with = fail_with
        self.opens = []
        self.closes = []
        self.price = None
        self.open_positions = {}

    def open_position(self, direction, size, instrument, strategy_id, label):
        self.opens.append((direction, size, instrument, strategy_id, label))
        if self.fail_with is not None:
            raise self.fail_with
        if not self.accept:
            return OrderResult.rejected("market closed")
        return OrderResult(ok=True, ticket=len(self.opens), price=self.price)

    def close_position(self, position):
        self.closes.append(position)
        if self.fail_with is not None:
            raise self.fail_with
        if not self.accept:
            return OrderResult.rejected("market closed")
        return OrderResult(ok=True, ticket=position.ticket, price=self.price, realized_pnl=1.5)

    def query_open_position(self, strategy_id):
        return self.open_positions.get(strategy_id)


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.messages = []

    def send(self, message):
        if self.fail:
            raise ConnectionError("push service unavailable")
        self.messages.append(message)
