# app/core/exchange.py

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional, Union


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =========================
# PAYLOADS
# =========================

@dataclass(frozen=True)
class StructuredPayload:
    """Text or JSON value submitted through the data endpoint."""

    value: Any


@dataclass(frozen=True)
class BinaryPayload:
    """
    Uploaded file. `content` is None when the record was loaded for
    metadata only; file bytes are read by consumption alone.
    """

    file_name: Optional[str]
    media_type: Optional[str]
    byte_size: int
    content: Optional[bytes] = None


Payload = Union[StructuredPayload, BinaryPayload]


# =========================
# RECORDS
# =========================

@dataclass
class Item:
    payload: Payload
    consumed: bool = False
    consumed_at: Optional[datetime] = None

    @property
    def is_file(self) -> bool:
        return isinstance(self.payload, BinaryPayload)


@dataclass
class ExchangeRecord:
    code: str
    items: List[Item]
    verified: bool = False
    verified_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class UploadedFile:
    file_name: Optional[str]
    media_type: Optional[str]
    content: bytes

    @property
    def byte_size(self) -> int:
        return len(self.content)


# =========================
# PROJECTIONS
# =========================

@dataclass(frozen=True)
class ItemMetadata:
    index: int
    is_file: bool
    consumed: bool
    file_name: Optional[str] = None
    media_type: Optional[str] = None
    byte_size: Optional[int] = None
    # Only populated for structured items
    data: Any = None


@dataclass(frozen=True)
class ExchangeMetadata:
    code: str
    items: List[ItemMetadata]
    verified: bool
    created_at: datetime
    verified_at: Optional[datetime] = None

    @property
    def item_count(self) -> int:
        return len(self.items)


def describe_item(index: int, item: Item) -> ItemMetadata:
    """Project an item for preview. File bytes are never included."""
    payload = item.payload
    if isinstance(payload, BinaryPayload):
        return ItemMetadata(
            index=index,
            is_file=True,
            consumed=item.consumed,
            file_name=payload.file_name,
            media_type=payload.media_type,
            byte_size=payload.byte_size,
        )
    return ItemMetadata(
        index=index,
        is_file=False,
        consumed=item.consumed,
        data=payload.value,
    )


def describe_record(record: ExchangeRecord) -> ExchangeMetadata:
    return ExchangeMetadata(
        code=record.code,
        items=[describe_item(index, item) for index, item in enumerate(record.items)],
        verified=record.verified,
        created_at=record.created_at,
        verified_at=record.verified_at,
    )


# =========================
# RESULTS
# =========================

@dataclass(frozen=True)
class IngestionResult:
    code: str
    item_count: int
    items: List[ItemMetadata]


@dataclass(frozen=True)
class ConsumedFile:
    content: bytes
    file_name: str
    media_type: str
    byte_size: int


@dataclass(frozen=True)
class DataEnvelope:
    code: str
    item_index: int
    data: Any
    created_at: datetime

    @property
    def file_name(self) -> str:
        return f"data-{self.code}-{self.item_index}.json"
