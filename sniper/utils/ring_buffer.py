# -*- coding: utf-8 -*-
"""
Ring Buffer
===========

고정 크기 numpy 링 버퍼.

- append: O(1)
- buf[i]: 절대 인덱스 (0 = 최초 append 값) 접근, 밀려난 값은 IndexError
- values(): 시간순 복사본 (rolling 통계용)
"""
import numpy as np

from ..errors import InvalidConfiguration


class RingBuffer:
    """최근 capacity개 float 값 보관"""

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise InvalidConfiguration(f"RingBuffer capacity must be > 0, got {capacity}")
        self.capacity = int(capacity)
        self._data = np.full(self.capacity, np.nan, dtype=np.float64)
        self._count = 0  # 누적 append 수

    def append(self, value: float):
        self._data[self._count % self.capacity] = value
        self._count += 1

    def clear(self):
        self._data.fill(np.nan)
        self._count = 0

    def __len__(self) -> int:
        return min(self._count, self.capacity)

    @property
    def total(self) -> int:
        """누적 append 수 (= 다음 절대 인덱스)"""
        return self._count

    @property
    def first_index(self) -> int:
        """보관 중인 가장 오래된 값의 절대 인덱스"""
        return self._count - len(self)

    @property
    def is_full(self) -> bool:
        return self._count >= self.capacity

    def __getitem__(self, index: int) -> float:
        if index < self.first_index or index >= self._count:
            raise IndexError(
                f"index {index} outside retained range [{self.first_index}, {self._count})"
            )
        return float(self._data[index % self.capacity])

    def last(self) -> float:
        return self[self._count - 1]

    def values(self) -> np.ndarray:
        """시간순 (오래된 → 최신) 배열"""
        if self._count <= self.capacity:
            return self._data[:self._count].copy()
        start = self._count % self.capacity
        return np.concatenate((self._data[start:], self._data[:start]))
