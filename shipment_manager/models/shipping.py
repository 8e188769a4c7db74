"""
Price estimation, COD and office/courier discovery models.
"""
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import List, Optional

from shipment_manager.models.order import OrderProductDetail, ShippingAddress


class CashOnDeliveryPolicy(str, Enum):
    NO_POLICY = "no_policy"
    ALLOWED = "allowed"
    NOT_ALLOWED = "not_allowed"


@dataclass(frozen=True)
class ShippingPriceEstimationRequestData:
    """
    Price estimation input.

    ``weight`` is grams; ``cod_amount``, ``insurance_amount`` and
    ``total_price`` are major units.
    """
    shipping_address: ShippingAddress
    weight: int
    currency: str
    cod_amount: float = 0.0
    insurance_amount: float = 0.0
    total_price: float = 0.0
    to_office: bool = False
    product_details: List[OrderProductDetail] = field(default_factory=list)


@dataclass(frozen=True)
class ShippingPriceEstimationResponseData:
    price: float


@dataclass(frozen=True)
class CashOnDeliveryAgreement:
    agreement_number: str
    client_name: str


@dataclass(frozen=True)
class CourierOfficeData:
    """Normalized pickup point / branch."""
    office_id: str
    office_code: str
    name: str
    area: str
    city_id: str
    city_name: str
    city_code: str
    address: str
    address_en: str
    city_en: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "CourierOfficeData":
        return cls(**data)


@dataclass(frozen=True)
class CompanyData:
    id: int
    name: str
    bulstat: str = ""
    address: str = ""
    mol: str = ""


@dataclass(frozen=True)
class CourierData:
    id: int
    name: str
    to_office: bool = False
    to_address: bool = False


@dataclass(frozen=True)
class EcontCourierOfficeFilters:
    """``country`` is an ISO 3166 alpha-3 code."""
    country: str
    address: Optional[str] = None


@dataclass(frozen=True)
class InOutCourierOfficeFilters:
    courier_id: int
    address: Optional[str] = None
