"""
Utils Package
=============

Utility modules for sniper.
"""
from .heartbeat import (
    HeartbeatScheduler,
    should_fire,
)
from .ring_buffer import RingBuffer
from .timeframe import (
    Duration,
    TimeframeSpec,
    TIMEFRAME_MINUTES,
    duration_to_seconds,
)

__all__ = [
    'HeartbeatScheduler',
    'should_fire',
    'RingBuffer',
    'Duration',
    'TimeframeSpec',
    'TIMEFRAME_MINUTES',
    'duration_to_seconds',
]
