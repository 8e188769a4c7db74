"""
Waybill lifecycle models and the normalized status enumeration.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional



class WaybillStatus(str, Enum):
    """Normalized shipment state shared by every carrier."""
    PENDING = "pending"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELED = "canceled"

    @classmethod
    def default_mapping(cls) -> Dict[str, "WaybillStatus"]:
        return {status.value: status for status in cls}


@dataclass
class CreateWayBillResponseData:
    """Carrier shipment number plus the raw carrier info needed later."""
    shipping_number: str
    shipping_info: Dict[str, Any] = field(default_factory=dict)

    @property
    def reference(self) -> Optional[str]:
        return self.shipping_info.get("reference")


@dataclass(frozen=True)
class BulkWayBillFailure:
    """Placeholder for an order that could not be created in a bulk run."""
    reference: str
    message: str = ""
    error: bool = True


@dataclass(frozen=True)
class DownloadWayBillRequestData:
    shipping_number: str
    shipping_info: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DownloadWayBillResponseData:
    type: str
    content: Any


@dataclass(frozen=True)
class MapWayBillRequestData:
    order_id: str
    shipping_number: str
    shipping_info: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class MapWayBillResponseData:
    order_id: str
    shipping_number: str
    url: str
    type: str = "application/pdf"
    reference: str = ""
    provider: str = ""


@dataclass(frozen=True)
class ShipmentStatusRequestData:
    """``shipping_info`` is the stored create response, keyed by shipping number."""
    shipping_numbers: List[str]
    shipping_info: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ShipmentStatus:
    """
    COD-paid and delivery state are independent: a shipment can be
    delivered without being paid and the reverse.
    """
    shipping_number: str
    is_paid: bool
    status: WaybillStatus


@dataclass(frozen=True)
class ShipmentStatusResponseData:
    data: List[ShipmentStatus]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


