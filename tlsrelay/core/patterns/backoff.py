from __future__ import annotations
import threading
from dataclasses import dataclass, field

@dataclass
class BackoffPolicy:
    """Exponential reconnect delay capped at ``max_delay``; attempts are unbounded."""
    min_delay: float = 1.0                # seconds
    max_delay: float = 60.0               # seconds
    factor: float    = 2.0
    attempts: int    = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def __post_init__(self):
        if self.min_delay <= 0 or self.max_delay < self.min_delay:
            raise ValueError("backoff requires 0 < min_delay <= max_delay")
        if self.factor < 1:
            raise ValueError("backoff factor must be >= 1")

    def next_delay(self) -> float:
        with self._lock:
            self.attempts += 1
            exponent = min(self.attempts - 1, 64)       # float overflow guard
            return min(self.min_delay * (self.factor ** exponent), self.max_delay)

    def reset(self) -> None:
        with self._lock:
            self.attempts = 0
