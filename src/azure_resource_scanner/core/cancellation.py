"""
Run-wide cancellation signal shared by every task of a scan
"""

import threading
import time
from typing import Optional

from .errors import ScanCancelled


class CancellationToken:
    """Single cancellation signal with an optional deadline"""

    def __init__(self, timeout: Optional[float] = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self):
        """Signal every holder of this token to stop"""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._event.set()
            return True
        return False

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without a deadline"""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self):
        """Raise ScanCancelled once the token is cancelled or expired"""
        if self.cancelled:
            raise ScanCancelled("Scan cancelled")
