# app/infra/exchange_store.py

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload, sessionmaker, undefer

from app.core.errors import DuplicateCode, InternalError
from app.core.exchange import (
    BinaryPayload,
    ExchangeRecord,
    Item,
    StructuredPayload,
)
from app.models.exchange import Exchange, ExchangeItem

logger = logging.getLogger(__name__)


class ExchangeStore:
    """
    Exchange records keyed by code.

    Every method runs in its own session and commits or rolls back as a
    unit. Database failures surface as InternalError; a taken code on
    insert surfaces as DuplicateCode.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def session(self):
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Exchange store operation failed: %s", e)
            raise InternalError("Database operation failed") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # =========================
    # READS
    # =========================

    def exists(self, code: str) -> bool:
        with self.session() as session:
            row = session.query(Exchange.code).filter(Exchange.code == code).first()
            return row is not None

    def get(self, code: str) -> Optional[ExchangeRecord]:
        """Load a record with item metadata. File bytes are left unloaded."""
        with self.session() as session:
            row = (
                session.query(Exchange)
                .options(selectinload(Exchange.items))
                .filter(Exchange.code == code)
                .first()
            )
            if row is None:
                return None
            return _to_record(row)

    # =========================
    # WRITES
    # =========================

    def insert(self, record: ExchangeRecord) -> None:
        """Insert a record and all its items, or nothing."""
        with self.session() as session:
            session.add(_from_record(record))
            try:
                session.flush()
            except IntegrityError as e:
                raise DuplicateCode(f"Code already in use: {record.code}") from e

    def mark_verified(self, code: str, at: datetime) -> Optional[ExchangeRecord]:
        """Flip the verified flag and return the updated record (None if absent)."""
        with self.session() as session:
            matched = (
                session.query(Exchange)
                .filter(Exchange.code == code)
                .update(
                    {Exchange.verified: True, Exchange.verified_at: at},
                    synchronize_session=False,
                )
            )
            if not matched:
                return None
            row = (
                session.query(Exchange)
                .options(selectinload(Exchange.items))
                .filter(Exchange.code == code)
                .one()
            )
            return _to_record(row)

    def claim_item(self, code: str, index: int, at: datetime) -> Optional[Item]:
        """
        Conditionally mark one item consumed.

        The UPDATE only matches an unconsumed item, so among concurrent
        callers exactly one gets the item back (with its payload). Everyone
        else gets None.
        """
        with self.session() as session:
            claimed = (
                session.query(ExchangeItem)
                .filter(
                    ExchangeItem.exchange_code == code,
                    ExchangeItem.position == index,
                    ExchangeItem.consumed == False,  # noqa: E712
                )
                .update(
                    {ExchangeItem.consumed: True, ExchangeItem.consumed_at: at},
                    synchronize_session=False,
                )
            )
            if claimed != 1:
                return None
            row = (
                session.query(ExchangeItem)
                .options(undefer(ExchangeItem.content))
                .filter(
                    ExchangeItem.exchange_code == code,
                    ExchangeItem.position == index,
                )
                .one()
            )
            return _to_item(row, with_content=True)

    def delete(self, code: str) -> bool:
        """Remove a record and its items in one transaction."""
        with self.session() as session:
            session.query(ExchangeItem).filter(
                ExchangeItem.exchange_code == code
            ).delete(synchronize_session=False)
            removed = (
                session.query(Exchange)
                .filter(Exchange.code == code)
                .delete(synchronize_session=False)
            )
            return removed > 0


# =========================
# ROW <-> DOMAIN
# =========================

def _to_item(row: ExchangeItem, with_content: bool = False) -> Item:
    if row.is_file:
        payload = BinaryPayload(
            file_name=row.file_name,
            media_type=row.media_type,
            byte_size=row.byte_size or 0,
            content=row.content if with_content else None,
        )
    else:
        payload = StructuredPayload(value=row.data)
    return Item(payload=payload, consumed=row.consumed, consumed_at=row.consumed_at)


def _to_record(row: Exchange) -> ExchangeRecord:
    return ExchangeRecord(
        code=row.code,
        items=[_to_item(item) for item in row.items],
        verified=row.verified,
        verified_at=row.verified_at,
        created_at=row.created_at,
    )


def _from_record(record: ExchangeRecord) -> Exchange:
    exchange = Exchange(
        code=record.code,
        verified=record.verified,
        verified_at=record.verified_at,
        created_at=record.created_at,
    )
    for position, item in enumerate(record.items):
        payload = item.payload
        if isinstance(payload, BinaryPayload):
            row = ExchangeItem(
                position=position,
                is_file=True,
                content=payload.content,
                file_name=payload.file_name,
                media_type=payload.media_type,
                byte_size=payload.byte_size,
            )
        else:
            row = ExchangeItem(position=position, is_file=False, data=payload.value)
        row.consumed = item.consumed
        row.consumed_at = item.consumed_at
        exchange.items.append(row)
    return exchange
