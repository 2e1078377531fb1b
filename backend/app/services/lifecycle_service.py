# app/services/lifecycle_service.py

import logging

from app.core.codes import normalize_code
from app.core.errors import NotFound

logger = logging.getLogger(__name__)


def delete_exchange(store, code) -> None:
    """Remove a record and all its items. Unknown codes are an error, not a no-op."""
    lookup = normalize_code(code)
    if not store.delete(lookup):
        raise NotFound("Data not found")
    logger.info("🗑️ Exchange %s deleted", lookup)
