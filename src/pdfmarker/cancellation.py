"""Cooperative cancellation checked at each fetch and embed step."""

from __future__ import annotations

import threading
from typing import Optional

from .errors import CancelledError


class CancellationToken:
    """Thread-safe flag a caller sets to abort a running operation."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled by caller") -> None:
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, step: str = "", *, page_index: Optional[int] = None, region_id: Optional[str] = None) -> None:
        """Raise CancelledError if cancel() has been called."""
        if not self._event.is_set():
            return
        message = self._reason or "cancelled by caller"
        if step:
            message = f"{message} before {step}"
        raise CancelledError(message, page_index=page_index, region_id=region_id)


def check_cancelled(
    token: Optional[CancellationToken],
    step: str,
    *,
    page_index: Optional[int] = None,
    region_id: Optional[str] = None,
) -> None:
    """Raise if ``token`` is set; a missing token never cancels."""
    if token is not None:
        token.raise_if_cancelled(step, page_index=page_index, region_id=region_id)
