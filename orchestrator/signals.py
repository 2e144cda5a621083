"""Shared authentication-failure notifications for target sessions."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional


logger = logging.getLogger(__name__)

AuthFailureListener = Callable[[Optional[str]], None]


class AuthFailureSignal:
    """In-process broadcast of target authentication failures.

    ``publish(None)`` means every target lost its session.
    """

    def __init__(self) -> None:
        self._listeners: List[AuthFailureListener] = []

    def subscribe(self, listener: AuthFailureListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def publish(self, connect_url: Optional[str] = None) -> int:
        """Notify every listener. Returns how many were notified."""
        notified = 0
        for listener in list(self._listeners):
            try:
                listener(connect_url)
                notified += 1
            except Exception as exc:
                logger.error(f"Auth failure listener raised for {connect_url or '*'}: {exc}")
        return notified
