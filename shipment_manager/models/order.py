"""
Normalized order snapshot handed to gateways by the order subsystem.

Money is in minor units (cents), weights are in grams.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "cash_on_delivery"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"


@dataclass(frozen=True)
class ShippingAddress:
    """Recipient address. ``country`` is an ISO 3166 alpha-3 code."""
    first_name: str
    last_name: str
    phone: str
    country: str
    city: str
    post_code: str = ""
    address: str = ""
    street_number: str = ""
    address_additions: str = ""
    area: str = ""
    province: str = ""
    company_name: Optional[str] = None
    email: Optional[str] = None
    office_id: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def to_office(self) -> bool:
        return bool(self.office_id)


@dataclass(frozen=True)
class OrderProductDetail:
    """One order line. ``weight`` is kilograms per unit, ``price`` major units."""
    name: str = ""
    quantity: int = 1
    weight: Optional[float] = None
    price: float = 0.0


@dataclass(frozen=True)
class OrderShippingData:
    order_id: str
    reference: str
    shipping_address: ShippingAddress
    payment_method: str
    total_price: int
    shipping_price: int = 0
    currency: str = "BGN"
    products_weight: int = 0
    products_quantity: int = 1
    parcels: int = 1
    description: str = ""
    notes: str = ""
    customer_email: Optional[str] = None
    open_package: bool = False
    order_product_details: List[OrderProductDetail] = field(default_factory=list)

    @property
    def is_cash_on_delivery(self) -> bool:
        return self.payment_method == PaymentMethod.CASH_ON_DELIVERY.value

    @property
    def goods_price(self) -> int:
        """Order total without the shipping charge, minor units."""
        return self.total_price - self.shipping_price
