"""Execution Layer - 단일 포지션 상태 머신 + 게이트웨이 계약"""
from .gateway import (
    ClosedTrade,
    ExecutionGateway,
    LoggingNotifier,
    Notifier,
    OrderResult,
    PaperGateway,
    safe_send,
)
from .state_machine import (
    BandConfirmationPolicy,
    CloseCommand,
    Decision,
    OpenCommand,
    OscillatorThresholdPolicy,
    PolicyKind,
    TradeState,
    TradingStateMachine,
    Transition,
)

__all__ = [
    'ClosedTrade',
    'ExecutionGateway',
    'LoggingNotifier',
    'Notifier',
    'OrderResult',
    'PaperGateway',
    'safe_send',
    'BandConfirmationPolicy',
    'CloseCommand',
    'Decision',
    'OpenCommand',
    'OscillatorThresholdPolicy',
    'PolicyKind',
    'TradeState',
    'TradingStateMachine',
    'Transition',
]
