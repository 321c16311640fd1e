from __future__ import annotations

import typing

_TYPE_REDUCE_RESULT = typing.Tuple[
    typing.Callable[..., object], typing.Tuple[object, ...]
]

# Base Exceptions


class PasteError(Exception):
    """Base exception used by this module."""

    pass


class ConfigurationError(PasteError, ValueError):
    """Raised before any I/O when a call is configured incorrectly."""

    pass


class ClosedPipeError(PasteError):
    """Raised on a read or write to a closed side of a pipe."""

    def __init__(self, message: str = "read/write on closed pipe") -> None:
        super().__init__(message)


# Leaf Exceptions


class InvalidHeadersError(ConfigurationError):
    """Raised when extra headers are not given as name/value pairs."""

    def __init__(self, headers: typing.Sequence[str]) -> None:
        self.headers = tuple(headers)
        super().__init__(
            f"invalid headers: expected name/value pairs, got {len(self.headers)} items"
        )

    def __reduce__(self) -> _TYPE_REDUCE_RESULT:
        # For pickling purposes.
        return self.__class__, (self.headers,)


class InvalidPasteReferenceError(ConfigurationError):
    """Raised when a paste reference is neither a paste URL nor a paste ID.

    :param reference: The rejected paste URL or ID.
    """

    def __init__(self, reference: str) -> None:
        self.reference = reference
        super().__init__("invalid paste URL")

    def __reduce__(self) -> _TYPE_REDUCE_RESULT:
        # For pickling purposes.
        return self.__class__, (self.reference,)


class ResponseError(PasteError):
    """Raised when the service answers with an unexpected status.

    The service reports failures as plain text, so the message is the
    response body, stripped of surrounding whitespace, and nothing else.

    :param status: The HTTP status code of the response.
    :param body: The stripped response body.
    """

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(body)

    def __reduce__(self) -> _TYPE_REDUCE_RESULT:
        # For pickling purposes.
        return self.__class__, (self.status, self.body)


class RequestCancelled(PasteError):
    """Raised when a :class:`~pasterun.util.cancel.CancelToken` fires mid-request."""

    def __init__(self, message: str = "request cancelled") -> None:
        super().__init__(message)


class BodyProducerError(PasteError):
    """Raised to the reader of a request body when producing the body failed.

    It is not an ``OSError``, so the HTTP layer never mistakes it for a
    dropped connection. The client unwraps it and raises ``error`` itself.

    :param error: The exception the producer failed with.
    """

    def __init__(self, error: BaseException) -> None:
        self.error = error
        super().__init__(f"request body could not be produced: {error!r}")

    def __reduce__(self) -> _TYPE_REDUCE_RESULT:
        # For pickling purposes.
        return self.__class__, (self.error,)


class ResponseFormatError(PasteError):
    """Raised when a successful response carries a body of the wrong shape.

    :param reason: What is wrong with the body.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"unexpected response from the service: {reason}")

    def __reduce__(self) -> _TYPE_REDUCE_RESULT:
        # For pickling purposes.
        return self.__class__, (self.reason,)
