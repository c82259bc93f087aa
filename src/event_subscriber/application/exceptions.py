from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class ConfigurationError(AppError):
    pass


class QueueUnavailableError(AppError):
    pass


class TransportError(AppError):
    """A receive or acknowledge call to the queue failed."""


class PayloadDecodeError(AppError):
    pass


class PublishError(AppError):
    pass
