# -*- coding: utf-8 -*-
"""
Execution Gateway & Notifier
============================

외부 협력자 계약 + 기본 구현.

ExecutionGateway (브로커 주문):
- open_position(direction, size, instrument, strategy_id, label) -> OrderResult
- close_position(position) -> OrderResult (realized_pnl 포함)
- query_open_position(strategy_id) -> Position | None

재시도/취소/타임아웃은 게이트웨이 책임. 코어는 fire-and-forget.

Notifier (푸시 알림):
- send(message): best-effort. 실패는 로그만 남기고 삼킴 (safe_send).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

from ..risk.positions import Direction, Position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderResult:
    """게이트웨이 응답"""
    ok: bool
    ticket: Optional[int] = None
    price: Optional[float] = None  # 체결가
    realized_pnl: Optional[float] = None  # 청산 시 실현 손익
    message: str = ""

    @classmethod
    def rejected(cls, message: str) -> "OrderResult":
        return cls(ok=False, message=message)


class ExecutionGateway(Protocol):
    def open_position(
        self,
        direction: Direction,
        size: float,
        instrument: str,
        strategy_id: int,
        label: str,
    ) -> OrderResult:
        ...

    def close_position(self, position: Position) -> OrderResult:
        ...

    def query_open_position(self, strategy_id: int) -> Optional[Position]:
        ...


class Notifier(Protocol):
    def send(self, message: str) -> None:
        ...


def safe_send(notifier: Optional[Notifier], message: str) -> bool:
    """알림 발송 (실패해도 예외 전파 없음)"""
    if notifier is None:
        return False
    try:
        notifier.send(message)
    except Exception as e:
        logger.warning(f"Notification failed: {e}")
        return False
    return True


class LoggingNotifier:
    """알림을 로그로 출력"""

    def __init__(self, name: str = "sniper.notify"):
        self._logger = logging.getLogger(name)

    def send(self, message: str) -> None:
        self._logger.info(message)


# =============================================================================
# Paper Gateway
# =============================================================================

@dataclass
class ClosedTrade:
    """청산 완료 거래"""
    ticket: int
    direction: Direction
    strategy_id: int
    size: float
    entry_price: float
    exit_price: float
    opened_at_bar: int
    closed_at_bar: int
    pnl: float
    label: str = ""


@dataclass
class PaperGateway:
    """
    인메모리 모의 체결 게이트웨이 (리플레이/테스트용)

    - mark(price, bar_index)로 현재가 갱신, 주문은 현재가로 즉시 체결
    - reject_opens / reject_closes로 거절 시뮬레이션
    """
    contract_size: float = 1.0
    reject_opens: bool = False
    reject_closes: bool = False

    trades: List[ClosedTrade] = field(default_factory=list)
    last_price: Optional[float] = None
    bar_index: int = -1

    _open: Dict[int, Position] = field(default_factory=dict)
    _next_ticket: int = 1

    def mark(self, price: float, bar_index: Optional[int] = None):
        self.last_price = price
        self.bar_index = self.bar_index + 1 if bar_index is None else bar_index

    def open_position(
        self,
        direction: Direction,
        size: float,
        instrument: str,
        strategy_id: int,
        label: str,
    ) -> OrderResult:
        if self.reject_opens:
            return OrderResult.rejected("open rejected (paper)")
        if self.last_price is None:
            return OrderResult.rejected("no price marked")
        if strategy_id in self._open:
            return OrderResult.rejected(f"strategy {strategy_id} already has an open position")

        ticket = self._next_ticket
        self._next_ticket += 1
        self._open[strategy_id] = Position(
            direction=direction,
            entry_price=self.last_price,
            strategy_id=strategy_id,
            opened_at_bar=self.bar_index,
            size=size,
            ticket=ticket,
            label=label,
        )
        logger.debug(f"[paper] open {direction.value} {size} {instrument} @ {self.last_price} #{ticket}")
        return OrderResult(ok=True, ticket=ticket, price=self.last_price)

    def close_position(self, position: Position) -> OrderResult:
        if self.reject_closes:
            return OrderResult.rejected("close rejected (paper)")
        held = self._open.get(position.strategy_id)
        if held is None:
            return OrderResult.rejected(f"no open position for strategy {position.strategy_id}")
        if self.last_price is None:
            return OrderResult.rejected("no price marked")

        del self._open[position.strategy_id]
        pnl = held.unrealized_pnl(self.last_price, self.contract_size)
        self.trades.append(ClosedTrade(
            ticket=held.ticket,
            direction=held.direction,
            strategy_id=held.strategy_id,
            size=held.size,
            entry_price=held.entry_price,
            exit_price=self.last_price,
            opened_at_bar=held.opened_at_bar,
            closed_at_bar=self.bar_index,
            pnl=pnl,
            label=held.label,
        ))
        return OrderResult(ok=True, ticket=held.ticket, price=self.last_price, realized_pnl=pnl)

    def query_open_position(self, strategy_id: int) -> Optional[Position]:
        return self._open.get(strategy_id)
