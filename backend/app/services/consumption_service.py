# app/services/consumption_service.py

import logging
from typing import Union

from app.core.codes import normalize_code
from app.core.errors import AlreadyConsumed, NotFound
from app.core.exchange import (
    BinaryPayload,
    ConsumedFile,
    DataEnvelope,
    utcnow,
)

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"


def _parse_index(item_index) -> int:
    try:
        return int(item_index)
    except (TypeError, ValueError):
        raise NotFound("Item not found")


def consume_item(store, code, item_index) -> Union[ConsumedFile, DataEnvelope]:
    """
    Hand out one item exactly once.

    The unconsumed -> consumed transition is a single conditional update in
    the store; concurrent callers for the same item get AlreadyConsumed.
    """
    lookup = normalize_code(code)
    record = store.get(lookup)
    if record is None:
        raise NotFound("Data not found")

    index = _parse_index(item_index)

    if index < 0 or index >= len(record.items):
        raise NotFound("Item not found")

    if record.items[index].consumed:
        logger.info("Item %d of %s already downloaded", index, lookup)
        raise AlreadyConsumed("This item has already been downloaded")

    item = store.claim_item(lookup, index, utcnow())
    if item is None:
        # Lost the race, or the record was deleted in between
        if not store.exists(lookup):
            raise NotFound("Data not found")
        logger.info("Item %d of %s already downloaded", index, lookup)
        raise AlreadyConsumed("This item has already been downloaded")

    logger.info("Item %d of %s downloaded", index, lookup)

    payload = item.payload
    if isinstance(payload, BinaryPayload):
        content = payload.content or b""
        return ConsumedFile(
            content=content,
            file_name=payload.file_name or f"file-{record.code}-{index}",
            media_type=payload.media_type or DEFAULT_MEDIA_TYPE,
            byte_size=len(content),
        )

    return DataEnvelope(
        code=record.code,
        item_index=index,
        data=payload.value,
        created_at=record.created_at,
    )
