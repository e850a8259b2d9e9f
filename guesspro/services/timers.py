import logging
from typing import Callable

logger = logging.getLogger(__name__)


class TimerHandle:
    """Cancellation token for a scheduled callback.

    Cancelling only flips a flag; a worker that already slept through its
    delay checks the flag before invoking the callback.
    """

    __slots__ = ('delay', 'callback', 'args', 'cancelled', 'fired')

    def __init__(self, delay: float, callback: Callable, args: tuple):
        self.delay = delay
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    def run(self) -> None:
        if self.cancelled or self.fired:
            return
        self.fired = True
        try:
            self.callback(*self.args)
        except Exception:
            logger.exception(f"[timer-error] callback={getattr(self.callback, '__name__', self.callback)}")


class BackgroundTimers:
    """One-shot timers on top of Socket.IO background tasks.

    Works with whichever async mode the ``socketio`` instance runs in.
    """

    def __init__(self, socketio):
        self.socketio = socketio

    def call_later(self, delay: float, callback: Callable, *args) -> TimerHandle:
        handle = TimerHandle(delay, callback, args)

        def _worker():
            self.socketio.sleep(delay)
            handle.run()

        self.socketio.start_background_task(_worker)
        return handle
