"""
BobGo provider settings.
"""
from typing import Optional

from pydantic import Field

from shipment_manager.modules.shipping.gateways.base import CarrierSettings


class BobGoSettings(CarrierSettings):
    partner_id: str = Field(alias="partnerId", min_length=1)
    default_service_code: str = Field(alias="defaultServiceCode", min_length=1)
    default_sender_address_id: Optional[str] = Field(None, alias="defaultSenderAddressId")
    # Parcel defaults: centimetres and kilograms
    default_length: float = Field(0, alias="defaultLength", ge=0)
    default_width: float = Field(0, alias="defaultWidth", ge=0)
    default_height: float = Field(0, alias="defaultHeight", ge=0)
    default_weight: float = Field(0, alias="defaultWeight", ge=0)
