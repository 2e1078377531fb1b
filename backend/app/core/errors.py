# app/core/errors.py


class ExchangeError(Exception):
    """Base error for every classified failure of an exchange operation."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ExchangeError):
    status_code = 400


class NotFound(ExchangeError):
    status_code = 404


class AlreadyConsumed(ExchangeError):
    """The item existed but has been downloaded already. Terminal."""

    status_code = 410


class PayloadTooLarge(ExchangeError):
    status_code = 413


class InternalError(ExchangeError):
    status_code = 500


class DuplicateCode(ExchangeError):
    """Raised by the store when a code is taken. Ingestion retries on it."""

    status_code = 500
