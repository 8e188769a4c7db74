"""
InOut provider settings.
"""
from pydantic import Field

from shipment_manager.modules.shipping.gateways.base import CarrierSettings

RETURN_DOCS_NOTHING = 0


class InOutSettings(CarrierSettings):
    company_id: int = Field(alias="companyId")
    courier_id: int = Field(alias="courierId")
    open_package: bool = Field(False, alias="openPackage")
    return_docs: int = Field(RETURN_DOCS_NOTHING, alias="returnDocs")
    saturday_delivery: bool = Field(False, alias="saturdayDelivery")
    is_fragile: bool = Field(False, alias="isFragile")
    # Tenant prices in EUR while InOut quotes BGN
    currency_conversion: bool = Field(False, alias="currencyConversion")
