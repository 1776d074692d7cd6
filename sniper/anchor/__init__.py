"""
Anchor Layer - Streaming RSI + Divergence
=========================================

- rsi.py: 증분 Wilder RSI (2번째 봉 raw 시드) + RSI MA/BB + 가격 BB
- divergence.py: 지연 피벗 Bullish/Bearish 다이버전스
"""
from .rsi import (
    IndicatorEngine,
    IndicatorSnapshot,
    MAType,
    RSIState,
    NEUTRAL_RSI,
)
from .divergence import (
    DivergenceDetector,
    DivergenceEvent,
    DivergenceKind,
)

__all__ = [
    # RSI
    'IndicatorEngine',
    'IndicatorSnapshot',
    'MAType',
    'RSIState',
    'NEUTRAL_RSI',

    # Divergence
    'DivergenceDetector',
    'DivergenceEvent',
    'DivergenceKind',
]
