"""Data Layer - PriceBar + DataFrame 변환"""
from .bars import (
    PriceBar,
    bars_from_frame,
    iter_bars,
    load_csv_bars,
)

__all__ = [
    'PriceBar',
    'bars_from_frame',
    'iter_bars',
    'load_csv_bars',
]
