# -*- coding: utf-8 -*-
"""
Position Tracker
================

strategy_id 당 1개 포지션 슬롯.

- 슬롯은 dict 키 (strategy_id) 직접 참조, 전체 스캔 없음
- strategy_id 태그 포지션의 외부 유일성은 가정 (브로커 측에서 강제하지 않음)
- 부분 체결/다중 포지션 미지원

사용법:
```python
tracker = PositionTracker()
tracker.open(Position(Direction.LONG, 1.0850, strategy_id=987654, opened_at_bar=120, size=0.02))
pos = tracker.get(987654)
closed = tracker.release(987654)
```
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional

from ..errors import PositionConflictError, PositionNotFoundError


class Direction(Enum):
    LONG = "long"
    SHORT = "short"

    @property
    def sign(self) -> int:
        return 1 if self is Direction.LONG else -1


@dataclass(frozen=True)
class Position:
    """포지션 정보"""
    direction: Direction
    entry_price: float
    strategy_id: int
    opened_at_bar: int
    size: float = 0.0
    ticket: Optional[int] = None  # 게이트웨이 주문 번호
    label: str = ""

    def unrealized_pnl(self, price: float, contract_size: float = 1.0) -> float:
        """미실현 손익 (가격 차 x 수량 x 계약 크기)"""
        return (price - self.entry_price) * self.direction.sign * self.size * contract_size


class PositionTracker:
    """strategy_id → Position 슬롯"""

    def __init__(self):
        self._slots: Dict[int, Position] = {}

    def open(self, position: Position) -> Position:
        if position.strategy_id in self._slots:
            raise PositionConflictError(
                f"strategy {position.strategy_id} already holds "
                f"{self._slots[position.strategy_id].direction.value} position"
            )
        self._slots[position.strategy_id] = position
        return position

    def get(self, strategy_id: int) -> Optional[Position]:
        return self._slots.get(strategy_id)

    def has_position(self, strategy_id: int) -> bool:
        return strategy_id in self._slots

    def release(self, strategy_id: int) -> Position:
        """슬롯 비우고 기존 포지션 반환"""
        try:
            return self._slots.pop(strategy_id)
        except KeyError:
            raise PositionNotFoundError(strategy_id) from None

    def adopt(self, position: Position) -> Position:
        """재시작 후 게이트웨이 포지션으로 슬롯 덮어쓰기"""
        self._slots[position.strategy_id] = position
        return position

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[Position]:
        return iter(list(self._slots.values()))
