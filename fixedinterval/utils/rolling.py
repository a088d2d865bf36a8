from __future__ import annotations
from collections import deque
from typing import Deque
import numpy as np


class SampleWindow:
    def __init__(self, maxlen: int):
        self._data: Deque[float] = deque(maxlen=maxlen)

    def add(self, x: float) -> None:
        self._data.append(x)

    def values(self) -> np.ndarray:
        if not self._data:
            return np.array([], dtype=float)
        return np.fromiter(self._data, dtype=float)

    def mean(self) -> float:
        if not self._data:
            return 0.0
        return float(np.mean(self.values()))

    def std(self) -> float:
        if len(self._data) < 2:
            return 0.0
        return float(np.std(self.values(), ddof=1))

    def max(self) -> float:
        if not self._data:
            return 0.0
        return float(np.max(self.values()))

    def percentile(self, q: float) -> float:
        if not self._data:
            return 0.0
        return float(np.percentile(self.values(), q))

    def __len__(self) -> int:
        return len(self._data)
