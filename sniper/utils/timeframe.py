"""
Timeframe & Duration Helpers
============================

Config 값 파싱용:
- TimeframeSpec: 봉 주기 ('15m', '1h', ...)
- Duration: 사람이 읽는 기간 ('4h', '90s', '1d')
- duration_to_seconds(): heartbeat interval 변환 (int 또는 문자열)

Usage:
    from sniper.utils.timeframe import duration_to_seconds

    duration_to_seconds("4h")    # -> 14400
    duration_to_seconds(14400)   # -> 14400
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Literal, Union
import re

from ..errors import InvalidConfiguration


# Predefined timeframe mappings (minutes per bar)
TIMEFRAME_MINUTES: Dict[str, int] = {
    '1m': 1,
    '5m': 5,
    '15m': 15,
    '30m': 30,
    '1h': 60,
    '4h': 240,
    '1d': 1440,
    '1w': 10080,
}

SECONDS_PER_UNIT: Dict[str, int] = {'s': 1, 'm': 60, 'h': 3600, 'd': 86400, 'w': 604800}


@dataclass(frozen=True)
class TimeframeSpec:
    """Immutable timeframe specification."""
    name: str
    minutes: int

    @classmethod
    def from_string(cls, tf: str) -> TimeframeSpec:
        """
        Parse timeframe string like '15m', '1h', '1d'.

        Raises:
            InvalidConfiguration: If timeframe is not recognized
        """
        tf_lower = str(tf).lower().strip()
        if tf_lower not in TIMEFRAME_MINUTES:
            valid = list(TIMEFRAME_MINUTES.keys())
            raise InvalidConfiguration(f"Unknown timeframe: '{tf}'. Valid options: {valid}")
        return cls(name=tf_lower, minutes=TIMEFRAME_MINUTES[tf_lower])


@dataclass(frozen=True)
class Duration:
    """
    Time duration.

    Examples:
        Duration(4, 'h').total_seconds   # -> 14400
        Duration.parse('90s')            # -> Duration(90, 's')
    """
    value: float
    unit: Literal['s', 'm', 'h', 'd', 'w']

    @property
    def total_seconds(self) -> int:
        return int(self.value * SECONDS_PER_UNIT[self.unit])

    @classmethod
    def parse(cls, s: str) -> Duration:
        """
        Parse duration string like '4h', '30m', '90s'.

        Raises:
            InvalidConfiguration: If format is invalid
        """
        match = re.match(r'^(\d+(?:\.\d+)?)\s*(s|m|h|d|w)$', s.strip().lower())
        if not match:
            raise InvalidConfiguration(
                f"Invalid duration format: '{s}'. "
                "Expected format: '4h', '30m', '90s', '1d', etc."
            )
        return cls(value=float(match.group(1)), unit=match.group(2))


def duration_to_seconds(value: Union[int, float, str]) -> int:
    """
    초 단위 정수 또는 기간 문자열 → 초

    >>> duration_to_seconds("4h")
    14400
    >>> duration_to_seconds(60)
    60
    """
    if isinstance(value, bool):
        raise InvalidConfiguration(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    return Duration.parse(str(value)).total_seconds
