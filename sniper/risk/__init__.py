"""Risk Layer - strategy_id 당 단일 포지션 슬롯"""
from .positions import (
    Direction,
    Position,
    PositionTracker,
)

__all__ = [
    'Direction',
    'Position',
    'PositionTracker',
]
