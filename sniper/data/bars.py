# -*- coding: utf-8 -*-
"""
Price Bars
==========

OHLCV 봉 데이터 모델 + pandas DataFrame 변환.

PriceFeed 계약:
- timestamp 엄격히 증가 (중복/역순 없음)
- 한 번 관측된 봉은 불변
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Union

import pandas as pd


OHLCV_COLUMNS = ('open', 'high', 'low', 'close', 'volume')


@dataclass(frozen=True)
class PriceBar:
    """OHLCV 봉"""
    timestamp: pd.Timestamp
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


def bars_from_frame(df: pd.DataFrame) -> List[PriceBar]:
    """
    OHLCV DataFrame → PriceBar 리스트

    DatetimeIndex 또는 'timestamp'/'time' 컬럼을 시간축으로 사용.
    volume 컬럼이 없으면 0.
    """
    missing = [c for c in OHLCV_COLUMNS[:4] if c not in df.columns]
    if missing:
        raise ValueError(f"Missing OHLC columns: {missing}")

    if isinstance(df.index, pd.DatetimeIndex):
        timestamps = df.index
    elif 'timestamp' in df.columns:
        timestamps = pd.to_datetime(df['timestamp'])
    elif 'time' in df.columns:
        timestamps = pd.to_datetime(df['time'])
    else:
        timestamps = pd.RangeIndex(len(df))

    volume = df['volume'] if 'volume' in df.columns else pd.Series(0.0, index=df.index)

    return [
        PriceBar(
            timestamp=ts,
            open=float(o),
            high=float(h),
            low=float(lo),
            close=float(c),
            volume=float(v),
        )
        for ts, o, h, lo, c, v in zip(
            timestamps,
            df['open'].to_numpy(),
            df['high'].to_numpy(),
            df['low'].to_numpy(),
            df['close'].to_numpy(),
            volume.to_numpy(),
        )
    ]


def iter_bars(history: Union[pd.DataFrame, Iterable[PriceBar]]) -> Iterator[PriceBar]:
    """DataFrame 또는 PriceBar iterable 모두 허용"""
    if isinstance(history, pd.DataFrame):
        return iter(bars_from_frame(history))
    return iter(history)


def load_csv_bars(path: Union[str, Path]) -> pd.DataFrame:
    """CSV 로드 (컬럼명 소문자 정규화, 시간순 정렬)"""
    df = pd.read_csv(path)
    df.columns = [str(c).strip().lower() for c in df.columns]

    for col in ('timestamp', 'time', 'date', 'datetime'):
        if col in df.columns:
            df.index = pd.DatetimeIndex(pd.to_datetime(df.pop(col)))
            break

    return df.sort_index()
