# app/services/verification_service.py

import logging

from app.core.codes import normalize_code
from app.core.errors import NotFound, ValidationError
from app.core.exchange import ExchangeMetadata, describe_record, utcnow

logger = logging.getLogger(__name__)


def verify_code(store, code) -> ExchangeMetadata:
    """
    Check a presented code and mark its record verified.

    Re-verifying is harmless: the flag stays set and only verified_at moves.
    Nothing is consumed; file bytes are never part of the result.
    """
    if code is None or str(code).strip() == "":
        raise ValidationError("Code is required")

    lookup = normalize_code(code)
    record = store.mark_verified(lookup, utcnow())
    if record is None:
        logger.info("Verification failed for unknown code")
        raise NotFound("Invalid code")

    logger.info("Code %s verified", lookup)
    return describe_record(record)


def describe_exchange(store, code) -> ExchangeMetadata:
    """Read-only metadata for polling. Does not touch the verified flag."""
    record = store.get(normalize_code(code))
    if record is None:
        raise NotFound("Data not found")
    return describe_record(record)
