"""
Sender address persistence.
"""
import logging
import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shipment_manager.models.sender_address import SenderAddress

logger = logging.getLogger(__name__)


class SenderAddressRepository:
    """Tenant-scoped store; the session is bound to the tenant's database."""

    def __init__(self, session: Session):
        self.session = session

    def next_identity(self) -> str:
        return str(uuid.uuid4())

    def find_one_by_id(self, address_id: str) -> Optional[SenderAddress]:
        return self.session.get(SenderAddress, address_id)

    def find_default_address(self) -> Optional[SenderAddress]:
        result = self.session.execute(
            select(SenderAddress).where(SenderAddress.is_default.is_(True)).limit(1)
        )
        return result.scalar_one_or_none()

    def get_count(self) -> int:
        return self.session.execute(select(func.count(SenderAddress.id))).scalar_one()

    def save(self, address: SenderAddress) -> SenderAddress:
        if not address.id:
            address.id = self.next_identity()
        self.session.add(address)
        self.session.flush()
        logger.info(f"Saved sender address {address.id} ({address.short_name})")
        return address
