from __future__ import annotations

from typing import Any, Callable

from flask_socketio import SocketIO

from ..logging_config import get_logger

logger = get_logger("timers")


class TurnTimer:
    """One-shot callback running on a Socket.IO background task.

    Cancellation is best-effort: a callback already past its sleep still runs,
    so callers must re-check their own state when it fires.
    """

    def __init__(self, socketio: SocketIO, delay_sec: float, callback: Callable[..., Any], args: tuple) -> None:
        self._socketio = socketio
        self.delay_sec = delay_sec
        self._callback = callback
        self._args = args
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not self.cancelled and not self.fired

    def cancel(self) -> None:
        self.cancelled = True

    def start(self) -> "TurnTimer":
        self._socketio.start_background_task(self._run)
        return self

    def _run(self) -> None:
        self._socketio.sleep(self.delay_sec)
        if self.cancelled:
            return
        self.fired = True
        try:
            self._callback(*self._args)
        except Exception:
            logger.exception("turn timer callback failed")


class SocketIOScheduler:
    def __init__(self, socketio: SocketIO) -> None:
        self.socketio = socketio

    def call_later(self, delay_sec: float, callback: Callable[..., Any], *args: Any) -> TurnTimer:
        return TurnTimer(self.socketio, delay_sec, callback, args).start()

    def sleep(self, seconds: float) -> None:
        self.socketio.sleep(seconds)
