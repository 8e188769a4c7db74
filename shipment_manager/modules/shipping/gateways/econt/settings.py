"""
Econt provider settings.
"""
from typing import Optional

from pydantic import Field, model_validator

from shipment_manager.modules.shipping.gateways.base import CarrierSettings


class EcontSettings(CarrierSettings):
    cash_on_delivery: bool = Field(False, alias="cashOnDelivery")
    use_cash_on_delivery_agreement: bool = Field(False, alias="useCashOnDeliveryAgreement")
    cash_on_delivery_agreement_number: Optional[str] = Field(None, alias="cashOnDeliveryAgreementNumber")
    default_sender_address_id: Optional[str] = Field(None, alias="defaultSenderAddressId")
    sender_office_code: Optional[str] = Field(None, alias="senderOfficeCode")
    shipment_type: str = Field("PACK", alias="shipmentType")
    declare_value: bool = Field(False, alias="declareValue")
    pay_after_accept: bool = Field(False, alias="payAfterAccept")
    pay_after_test: bool = Field(False, alias="payAfterTest")
    sms_notification: bool = Field(False, alias="smsNotification")
    # kg, used when the order carries no weight
    default_weight: float = Field(1.0, alias="defaultWeight", gt=0)

    @model_validator(mode="after")
    def check_agreement_number(self):
        if self.use_cash_on_delivery_agreement and not self.cash_on_delivery_agreement_number:
            raise ValueError("cashOnDeliveryAgreementNumber is required when useCashOnDeliveryAgreement is on")
        return self
