"""
Sender address model

Tenant-owned pickup address. Carriers that expose a client profile seed this
table on the first successful credential validation; afterwards addresses are
only looked up.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, String, Boolean, DateTime, Index

from shipment_manager.core.database import Base


class SenderAddress(Base):
    __tablename__ = "sender_addresses"
    __table_args__ = (
        Index("ix_sender_addresses_default", "is_default"),
    )

    id = Column(String(36), primary_key=True)

    short_name = Column(String(255), nullable=False)
    sender_name = Column(String(255), nullable=False)
    sender_phone = Column(String(50), nullable=True)

    # ISO 3166 alpha-2 or alpha-3, converted at the carrier edge
    country_code = Column(String(3), nullable=False)
    city = Column(String(255), nullable=False)
    province = Column(String(255), nullable=True)
    post_code = Column(String(20), nullable=True)
    street_name = Column(String(255), nullable=True)
    street_number = Column(String(50), nullable=True)
    place_id = Column(String(100), nullable=True)

    is_default = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def __repr__(self) -> str:
        return f"<SenderAddress {self.id} {self.short_name!r}>"
