from __future__ import annotations


class PlanStreamError(Exception):
    pass


class ConfigError(PlanStreamError):
    pass


class InvalidIdentifier(PlanStreamError):
    pass


class MissingLogLocation(PlanStreamError):
    pass


class TransportError(PlanStreamError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(TransportError):
    pass


class ParseError(PlanStreamError):
    pass


class StreamCanceled(PlanStreamError):
    pass
