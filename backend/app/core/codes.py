# app/core/codes.py

import logging
import secrets

logger = logging.getLogger(__name__)

CODE_MIN = 100000
CODE_MAX = 999999


def generate_code() -> str:
    """Random 6-digit numeric code in [100000, 999999]"""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def normalize_code(code) -> str:
    """Lookup form of a presented code. Upper-cased like room codes."""
    return str(code).strip().upper()


def ensure_unique(store) -> str:
    """
    Draw codes until one is not held by a live record.

    Does not reserve the code: the insert can still lose a race, which the
    caller handles by catching DuplicateCode and calling this again.
    Loops forever if all 900,000 codes are live.
    """
    attempts = 0
    while True:
        attempts += 1
        code = generate_code()
        if not store.exists(code):
            if attempts > 1:
                logger.debug("Found free code after %d attempts", attempts)
            return code
