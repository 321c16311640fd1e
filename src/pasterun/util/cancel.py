from __future__ import annotations

import logging
import threading
import typing

from ..exceptions import RequestCancelled

log = logging.getLogger(__name__)

_TYPE_CALLBACK = typing.Callable[[], None]


class CancelToken:
    """
    A one-shot cancellation signal shared between a caller and the requests
    it starts.

    Callbacks registered with :meth:`add_callback` run exactly once, either
    on the thread calling :meth:`cancel` or immediately on registration when
    the token has already fired.

    Example:

    .. code-block:: python

        import pasterun
        from pasterun.options import cancel

        token = pasterun.CancelToken.after(5.0)
        url = pasterun.upload(open("big.log", "rb"), cancel(token))
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._callbacks: list[_TYPE_CALLBACK] = []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(cancelled={self.cancelled})"

    @classmethod
    def after(cls, seconds: float) -> CancelToken:
        """Return a token that cancels itself once ``seconds`` have elapsed."""
        token = cls()
        timer = threading.Timer(seconds, token.cancel)
        timer.daemon = True
        timer.start()
        return token

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Fire the token. Calling this more than once has no further effect."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []

        log.debug("Cancelling %d pending operation(s)", len(callbacks))
        for callback in callbacks:
            callback()

    def add_callback(self, callback: _TYPE_CALLBACK) -> _TYPE_CALLBACK:
        """
        Run ``callback`` when the token fires.

        Returns a function that unregisters the callback again, which is a
        no-op once the token has fired.
        """
        with self._lock:
            fired = self._event.is_set()
            if not fired:
                self._callbacks.append(callback)

        if fired:
            callback()

        def remove() -> None:
            with self._lock:
                try:
                    self._callbacks.remove(callback)
                except ValueError:
                    pass

        return remove

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise RequestCancelled()
