# -*- coding: utf-8 -*-
"""
Trading State Machine
=====================

단일 포지션 진입/청산 상태 머신 (FLAT / LONG / SHORT).

정책 (교체 가능):
1. Oscillator threshold (RSI Sniper)
   - FLAT → LONG: rsi < buy_threshold
   - FLAT → SHORT: rsi > sell_threshold
   - LONG → FLAT: rsi >= 50 / SHORT → FLAT: rsi <= 50
2. Band confirmation (Mean Snapper)
   - FLAT → LONG: close < 가격 하단밴드 AND rsi < oversold_gate
   - FLAT → SHORT: close > 가격 상단밴드 AND rsi > overbought_gate
   - LONG → FLAT: price >= 중심선 / SHORT → FLAT: price <= 중심선

공통 규칙:
- 봉당 전이 1회만 평가. 청산 우선, 청산한 봉에서는 재진입 평가 안 함
- 진입은 FLAT에서만, 청산은 LONG/SHORT에서만
- 게이트웨이 거절 시 상태 유지 (재시도 없음, 다음 봉에서 재평가)
- 상태는 PositionTracker 슬롯에서 파생 (슬롯 비어있음 = FLAT)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ..anchor.divergence import DivergenceEvent
from ..anchor.rsi import IndicatorSnapshot
from ..errors import InvalidConfiguration
from ..risk.positions import Direction, Position, PositionTracker
from .gateway import ExecutionGateway, Notifier, OrderResult, safe_send

logger = logging.getLogger(__name__)

RSI_MEAN_LEVEL = 50.0


class TradeState(Enum):
    FLAT = "flat"
    LONG = "long"
    SHORT = "short"


class Transition(Enum):
    HOLD = "hold"
    ENTER_LONG = "enter_long"
    ENTER_SHORT = "enter_short"
    EXIT_LONG = "exit_long"
    EXIT_SHORT = "exit_short"


class PolicyKind(Enum):
    OSCILLATOR = "oscillator"
    BAND = "band"

    @classmethod
    def parse(cls, value: Union["PolicyKind", str]) -> "PolicyKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidConfiguration(
                f"Unknown policy: {value!r}. Valid: {[p.value for p in cls]}"
            ) from None


_STATE_BY_DIRECTION = {Direction.LONG: TradeState.LONG, Direction.SHORT: TradeState.SHORT}
_ENTRY = {Direction.LONG: Transition.ENTER_LONG, Direction.SHORT: Transition.ENTER_SHORT}
_EXIT = {Direction.LONG: Transition.EXIT_LONG, Direction.SHORT: Transition.EXIT_SHORT}


# =============================================================================
# Commands
# =============================================================================

@dataclass(frozen=True)
class OpenCommand:
    direction: Direction
    size: float
    instrument: str
    strategy_id: int
    label: str


@dataclass(frozen=True)
class CloseCommand:
    position: Position


@dataclass(frozen=True)
class Decision:
    """봉 1개 처리 결과"""
    bar_index: int
    state_before: TradeState
    state_after: TradeState
    transition: Transition = Transition.HOLD
    command: Optional[Union[OpenCommand, CloseCommand]] = None
    accepted: bool = False
    realized_pnl: Optional[float] = None
    divergence: Optional[DivergenceEvent] = None
    message: str = ""

    @property
    def rejected(self) -> bool:
        return self.command is not None and not self.accepted


# =============================================================================
# Policies
# =============================================================================

class OscillatorThresholdPolicy:
    """RSI 임계값 진입 + RSI 50 평균회귀 청산"""

    def __init__(self, buy_threshold: float = 37.0, sell_threshold: float = 67.0,
                 exit_level: float = RSI_MEAN_LEVEL):
        self.buy_threshold = buy_threshold
        self.sell_threshold = sell_threshold
        self.exit_level = exit_level

    def entry_direction(self, snapshot: IndicatorSnapshot, price: float) -> Optional[Direction]:
        if snapshot.rsi < self.buy_threshold:
            return Direction.LONG
        if snapshot.rsi > self.sell_threshold:
            return Direction.SHORT
        return None

    def should_exit(self, direction: Direction, snapshot: IndicatorSnapshot, price: float) -> bool:
        if direction is Direction.LONG:
            return snapshot.rsi >= self.exit_level
        return snapshot.rsi <= self.exit_level

    def label(self, direction: Direction) -> str:
        if direction is Direction.LONG:
            return f"RSI Under {self.buy_threshold:g}"
        return f"RSI Over {self.sell_threshold:g}"

    def describe(self) -> str:
        return f"Buy < {self.buy_threshold:g}, Sell > {self.sell_threshold:g}"


class BandConfirmationPolicy:
    """가격 볼린저 밴드 이탈 + RSI 확인 진입, 중심선 청산"""

    def __init__(self, oversold_gate: float = 30.0, overbought_gate: float = 70.0):
        self.oversold_gate = oversold_gate
        self.overbought_gate = overbought_gate

    def entry_direction(self, snapshot: IndicatorSnapshot, price: float) -> Optional[Direction]:
        if not snapshot.has_price_bands:
            return None
        if price < snapshot.price_lower and snapshot.rsi < self.oversold_gate:
            return Direction.LONG
        if price > snapshot.price_upper and snapshot.rsi > self.overbought_gate:
            return Direction.SHORT
        return None

    def should_exit(self, direction: Direction, snapshot: IndicatorSnapshot, price: float) -> bool:
        if not snapshot.has_price_bands:
            return False
        if direction is Direction.LONG:
            return price >= snapshot.price_middle
        return price <= snapshot.price_middle

    def label(self, direction: Direction) -> str:
        return "Snapper Long" if direction is Direction.LONG else "Snapper Short"

    def describe(self) -> str:
        return f"Band + RSI < {self.oversold_gate:g} / > {self.overbought_gate:g}"


# =============================================================================
# State Machine
# =============================================================================

class TradingStateMachine:
    """
    단일 포지션 상태 머신

    Args:
        policy: OscillatorThresholdPolicy | BandConfirmationPolicy
        gateway: ExecutionGateway
        strategy_id: 포지션 식별자 (magic number)
        instrument: 심볼
        lot_size: 주문 수량
        tracker: PositionTracker (공유 가능, 기본 새 인스턴스)
        notifier: 진입/청산 알림 (None이면 발송 안 함)
    """

    def __init__(
        self,
        policy,
        gateway: ExecutionGateway,
        *,
        strategy_id: int,
        instrument: str,
        lot_size: float,
        tracker: Optional[PositionTracker] = None,
        notifier: Optional[Notifier] = None,
    ):
        if isinstance(lot_size, bool) or lot_size <= 0:
            raise InvalidConfiguration(f"lot_size must be > 0, got {lot_size!r}")
        self.policy = policy
        self.gateway = gateway
        self.strategy_id = strategy_id
        self.instrument = instrument
        self.lot_size = lot_size
        self.tracker = tracker if tracker is not None else PositionTracker()
        self.notifier = notifier

    @property
    def position(self) -> Optional[Position]:
        return self.tracker.get(self.strategy_id)

    @property
    def state(self) -> TradeState:
        position = self.position
        if position is None:
            return TradeState.FLAT
        return _STATE_BY_DIRECTION[position.direction]

    def sync_with_gateway(self) -> TradeState:
        """재시작 복구: 게이트웨이에 열린 포지션을 슬롯에 반영"""
        broker = self.gateway.query_open_position(self.strategy_id)
        local = self.position
        if broker is not None and local != broker:
            self.tracker.adopt(broker)
            logger.info(f"Adopted open {broker.direction.value} position for strategy {self.strategy_id}")
        elif broker is None and local is not None:
            self.tracker.release(self.strategy_id)
            logger.info(f"Strategy {self.strategy_id} has no open position at gateway, now FLAT")
        return self.state

    def on_bar(
        self,
        snapshot: IndicatorSnapshot,
        price: Optional[float] = None,
        divergence: Optional[DivergenceEvent] = None,
    ) -> Decision:
        """
        봉 1개 평가

        Args:
            snapshot: 현재 봉 지표
            price: 현재가 (기본 snapshot.close)
            divergence: 이번 봉에 감지된 다이버전스 (참고용으로 Decision에 전달)
        """
        if price is None:
            price = snapshot.close

        position = self.position
        if position is not None:
            if self.policy.should_exit(position.direction, snapshot, price):
                return self._exit(position, snapshot, price, divergence)
            return self._hold(snapshot, divergence)

        direction = self.policy.entry_direction(snapshot, price)
        if direction is None:
            return self._hold(snapshot, divergence)
        return self._enter(direction, snapshot, divergence)

    def _hold(self, snapshot, divergence) -> Decision:
        state = self.state
        return Decision(
            bar_index=snapshot.bar_index,
            state_before=state,
            state_after=state,
            divergence=divergence,
        )

    def _enter(self, direction: Direction, snapshot: IndicatorSnapshot, divergence) -> Decision:
        command = OpenCommand(
            direction=direction,
            size=self.lot_size,
            instrument=self.instrument,
            strategy_id=self.strategy_id,
            label=self.policy.label(direction),
        )
        result = self._submit(lambda: self.gateway.open_position(
            command.direction, command.size, command.instrument, command.strategy_id, command.label,
        ))

        if not result.ok:
            logger.warning(f"Open {direction.value} rejected at bar {snapshot.bar_index}: {result.message}")
            return Decision(
                bar_index=snapshot.bar_index,
                state_before=TradeState.FLAT,
                state_after=TradeState.FLAT,
                command=command,
                divergence=divergence,
                message=result.message,
            )

        position = self.tracker.open(Position(
            direction=direction,
            entry_price=result.price if result.price is not None else snapshot.close,
            strategy_id=self.strategy_id,
            opened_at_bar=snapshot.bar_index,
            size=self.lot_size,
            ticket=result.ticket,
            label=command.label,
        ))
        side = "BUY" if direction is Direction.LONG else "SELL"
        message = f"{side} Triggered | {self.instrument} | RSI: {snapshot.rsi:.2f}"
        logger.info(f"{message} | entry={position.entry_price}")
        safe_send(self.notifier, message)

        return Decision(
            bar_index=snapshot.bar_index,
            state_before=TradeState.FLAT,
            state_after=self.state,
            transition=_ENTRY[direction],
            command=command,
            accepted=True,
            divergence=divergence,
            message=message,
        )

    def _exit(self, position: Position, snapshot: IndicatorSnapshot, price: float, divergence) -> Decision:
        state = self.state
        command = CloseCommand(position=position)
        result = self._submit(lambda: self.gateway.close_position(position))

        if not result.ok:
            logger.warning(f"Close {position.direction.value} rejected at bar {snapshot.bar_index}: {result.message}")
            return Decision(
                bar_index=snapshot.bar_index,
                state_before=state,
                state_after=state,
                command=command,
                divergence=divergence,
                message=result.message,
            )

        self.tracker.release(self.strategy_id)
        pnl = result.realized_pnl
        side = "Long" if position.direction is Direction.LONG else "Short"
        if pnl is None:
            message = f"{side} Closed | {self.instrument} | price {price} | RSI: {snapshot.rsi:.2f}"
        else:
            message = f"{side} Closed | {self.instrument} | Profit: ${pnl:.2f}"
        logger.info(message)
        safe_send(self.notifier, message)

        return Decision(
            bar_index=snapshot.bar_index,
            state_before=state,
            state_after=TradeState.FLAT,
            transition=_EXIT[position.direction],
            command=command,
            accepted=True,
            realized_pnl=pnl,
            divergence=divergence,
            message=message,
        )

    def _submit(self, send) -> OrderResult:
        try:
            result = send()
        except Exception as e:
            logger.warning(f"Gateway error: {e}")
            return OrderResult.rejected(str(e))
        if result is None:
            return OrderResult.rejected("gateway returned no result")
        return result
