# app/models/exchange.py

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import deferred, relationship

from app.core.exchange import utcnow
from app.models.base import Base


class Exchange(Base):
    __tablename__ = "exchanges"

    # Primary key doubles as the uniqueness guard for concurrent ingestion
    code = Column(String(16), primary_key=True)

    verified = Column(Boolean, nullable=False, default=False)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    items = relationship(
        "ExchangeItem",
        back_populates="exchange",
        order_by="ExchangeItem.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ExchangeItem(Base):
    __tablename__ = "exchange_items"
    __table_args__ = (
        UniqueConstraint("exchange_code", "position", name="uq_exchange_item_position"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    exchange_code = Column(
        String(16),
        ForeignKey("exchanges.code", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False)

    is_file = Column(Boolean, nullable=False, default=False)

    # Structured payload (text / JSON)
    data = Column(JSON, nullable=True)

    # File payload. Deferred so metadata reads never pull file bytes.
    content = deferred(Column(LargeBinary, nullable=True))
    file_name = Column(String, nullable=True)
    media_type = Column(String(255), nullable=True)
    byte_size = Column(BigInteger, nullable=True)

    consumed = Column(Boolean, nullable=False, default=False)
    consumed_at = Column(DateTime(timezone=True), nullable=True)

    exchange = relationship("Exchange", back_populates="items")
