# -*- coding: utf-8 -*-
"""
Heartbeat Test
==============
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from sniper.errors import InvalidConfiguration
from sniper.utils.heartbeat import HeartbeatScheduler, should_fire

T0 = 1_700_000_000.0
FOUR_HOURS = 14400


class TestShouldFire:
    """순수 시간 게이트"""

    def test_fires_after_interval(self):
        fire, last = should_fire(T0 + 14401, T0, FOUR_HOURS)
        assert fire
        assert last == T0 + 14401

    def test_not_before_interval(self):
        fire, last = should_fire(T0 + 14399, T0, FOUR_HOURS)
        assert not fire
        assert last == T0

    def test_exact_boundary_fires(self):
        fire, _ = should_fire(T0 + FOUR_HOURS, T0, FOUR_HOURS)
        assert fire


class TestHeartbeatScheduler:

    def test_send_on_start(self):
        hb = HeartbeatScheduler(FOUR_HOURS, send_on_start=True)
        assert hb.start(T0)
        assert not hb.tick(T0 + 60)
        assert hb.tick(T0 + 14401)
        assert not hb.tick(T0 + 14401 + 60)

    def test_no_send_on_start(self):
        hb = HeartbeatScheduler(FOUR_HOURS, send_on_start=False)
        assert not hb.start(T0)
        # last_fire_time = 0 → 첫 tick 즉시 발송
        assert hb.tick(T0 + 1)
        assert not hb.tick(T0 + 2)

    def test_timer_faster_than_interval(self):
        """짧은 타이머: 경계 전 발송 없음, 경계 tick에서 1회"""
        hb = HeartbeatScheduler(FOUR_HOURS, send_on_start=True)
        hb.start(T0)
        fired = sum(hb.tick(T0 + s) for s in range(1, FOUR_HOURS, 7))
        assert fired == 0
        assert hb.tick(T0 + FOUR_HOURS)
        assert not hb.tick(T0 + FOUR_HOURS + 7)

    def test_fires_once_per_interval(self):
        """4시간 경계를 지나는 tick 시퀀스 → 정확히 1회"""
        hb = HeartbeatScheduler(FOUR_HOURS, send_on_start=True)
        hb.start(T0)
        fired = [s for s in range(1, FOUR_HOURS + 1, 7) if hb.tick(T0 + s)]
        assert fired == [FOUR_HOURS]

    @pytest.mark.parametrize("interval", [0, -5])
    def test_invalid_interval(self, interval):
        with pytest.raises(InvalidConfiguration):
            HeartbeatScheduler(interval)
