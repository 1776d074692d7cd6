# -*- coding: utf-8 -*-
"""
Heartbeat Scheduler
===================

주기적 상태 알림용 시간 게이트.

- should_fire(): 순수 함수 (now - last >= interval)
- HeartbeatScheduler: last_fire_time 보관 + 시작 시 1회 발송 옵션

타이머 주기와 봉 주기는 독립. 고정 비율로 교차한다고 가정하지 않음.
"""
from typing import Tuple

from ..errors import InvalidConfiguration


def should_fire(
    now: float,
    last_fire_time: float,
    interval_seconds: float,
) -> Tuple[bool, float]:
    """
    Heartbeat 발송 여부

    Args:
        now: 현재 시각 (epoch seconds)
        last_fire_time: 마지막 발송 시각
        interval_seconds: 발송 주기 (초)

    Returns:
        (fire, new_last_fire_time)
    """
    if now - last_fire_time >= interval_seconds:
        return True, now
    return False, last_fire_time


class HeartbeatScheduler:
    """Heartbeat 타이머 상태"""

    def __init__(self, interval_seconds: int, send_on_start: bool = False):
        if interval_seconds <= 0:
            raise InvalidConfiguration(
                f"heartbeat interval must be > 0 seconds, got {interval_seconds}"
            )
        self.interval_seconds = interval_seconds
        self.send_on_start = send_on_start
        # 0 = epoch -> 첫 tick에서 바로 발송
        self.last_fire_time: float = 0.0

    def start(self, now: float) -> bool:
        """시작 시 1회 발송 (send_on_start=True일 때만)"""
        if self.send_on_start:
            self.last_fire_time = now
            return True
        return False

    def tick(self, now: float) -> bool:
        fire, self.last_fire_time = should_fire(now, self.last_fire_time, self.interval_seconds)
        return fire
