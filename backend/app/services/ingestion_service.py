# app/services/ingestion_service.py

import logging
from typing import Any, List, Optional

from app.core import codes
from app.core.config import DEFAULT_MAX_FILE_SIZE, DEFAULT_MAX_FILES
from app.core.errors import DuplicateCode, PayloadTooLarge, ValidationError
from app.core.exchange import (
    BinaryPayload,
    ExchangeRecord,
    IngestionResult,
    Item,
    StructuredPayload,
    UploadedFile,
    describe_item,
    utcnow,
)

logger = logging.getLogger(__name__)


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def format_size(num_bytes: int) -> str:
    """Human-readable size limit, e.g. 5GB or 512KB"""
    for unit, factor in (("GB", 1024 ** 3), ("MB", 1024 ** 2), ("KB", 1024)):
        if num_bytes >= factor and num_bytes % factor == 0:
            return f"{num_bytes // factor}{unit}"
    return f"{num_bytes} bytes"


def _store_items(store, items: List[Item]) -> IngestionResult:
    """Mint a code and insert the record. A lost code race is retried."""
    while True:
        code = codes.ensure_unique(store)
        record = ExchangeRecord(code=code, items=items, created_at=utcnow())
        try:
            store.insert(record)
        except DuplicateCode:
            logger.warning("Code %s was taken concurrently, drawing a new one", code)
            continue

        logger.info("✅ Code %s issued for %d item(s)", code, len(items))
        return IngestionResult(
            code=code,
            item_count=len(items),
            items=[describe_item(index, item) for index, item in enumerate(items)],
        )


def create_from_data(
    store,
    data: Any = None,
    multiple_data: Optional[List[Any]] = None,
) -> IngestionResult:
    """Store one data value, or a list of them, under a new code"""
    if multiple_data:
        values = list(multiple_data)
    elif not _is_missing(data):
        values = [data]
    else:
        raise ValidationError("Data is required")

    items = [Item(payload=StructuredPayload(value=value)) for value in values]
    return _store_items(store, items)


def create_from_files(
    store,
    files: List[UploadedFile],
    max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    max_files: int = DEFAULT_MAX_FILES,
) -> IngestionResult:
    """Store uploaded files under a new code"""
    if not files:
        raise ValidationError("At least one file is required")

    if len(files) > max_files:
        raise ValidationError(f"Too many files: at most {max_files} files per upload")

    for upload in files:
        if upload.byte_size > max_file_size:
            raise PayloadTooLarge(
                f"File size exceeds {format_size(max_file_size)} limit. "
                "Please upload smaller files."
            )

    items = [
        Item(
            payload=BinaryPayload(
                file_name=upload.file_name,
                media_type=upload.media_type,
                byte_size=upload.byte_size,
                content=upload.content,
            )
        )
        for upload in files
    ]
    return _store_items(store, items)
