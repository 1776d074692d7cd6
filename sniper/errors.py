# -*- coding: utf-8 -*-
"""
Errors
======

설정 검증 및 포지션 슬롯 오류.

- InvalidConfiguration: 생성 시점에만 발생 (런타임 X)
- PositionConflictError / PositionNotFoundError: PositionTracker 오용
"""


class SniperError(Exception):
    pass


class InvalidConfiguration(SniperError, ValueError):
    """잘못된 설정값 (period <= 0, length <= 0, interval <= 0 등)"""


class PositionConflictError(SniperError):
    """같은 strategy_id 슬롯에 이미 포지션이 있음"""


class PositionNotFoundError(SniperError, KeyError):
    """strategy_id 슬롯이 비어 있음"""
