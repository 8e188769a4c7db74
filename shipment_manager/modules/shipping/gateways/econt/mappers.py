"""
Econt label payload assembly.

Price estimation and waybill creation send the same label to
LabelService.createLabel; only ``mode`` differs. Assembly is split in two
steps: the params mapper turns an estimation request or an order into
CreateLabelRequestParams, the data mapper renders those params into the
Econt label JSON. Both return a Violation instead of raising when a business
rule rejects the request or the sender country code is unknown.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Union

from shipment_manager.core.exceptions import GatewayError
from shipment_manager.core.utils import int_to_float
from shipment_manager.models.error import Violation
from shipment_manager.models.order import OrderShippingData, ShippingAddress
from shipment_manager.models.sender_address import SenderAddress
from shipment_manager.models.shipping import CashOnDeliveryAgreement, ShippingPriceEstimationRequestData
from shipment_manager.modules.shipping.gateways.base import SENDER_ADDRESS_NOT_FOUND_MESSAGE
from shipment_manager.modules.shipping.gateways.econt.settings import EcontSettings
from shipment_manager.services.country_codes import to_alpha3

COD_AGREEMENT_NOT_FOUND_MESSAGE = "COD Agreement not found."
COD_TYPE_GET = "get"
COUNTRY_PATH = "country"
SHIPMENT_DESCRIPTION_LIMIT = 250


@dataclass(frozen=True)
class CreateLabelRequestParams:
    settings: EcontSettings
    sender: SenderAddress
    receiver: ShippingAddress
    weight: float
    currency: str
    cod_amount: float = 0.0
    declared_value: float = 0.0
    pack_count: int = 1
    description: str = ""
    shipment_number: str = ""
    order_number: str = ""


class CreateLabelRequestParamsMapper:
    def from_estimation_request_data(
        self,
        settings: EcontSettings,
        data: ShippingPriceEstimationRequestData,
        sender: Optional[SenderAddress],
    ) -> Union[CreateLabelRequestParams, Violation]:
        if sender is None:
            return Violation(SENDER_ADDRESS_NOT_FOUND_MESSAGE)

        return CreateLabelRequestParams(
            settings=settings,
            sender=sender,
            receiver=data.shipping_address,
            weight=int_to_float(data.weight, 3) or settings.default_weight,
            currency=data.currency,
            cod_amount=data.cod_amount,
            declared_value=data.total_price,
        )

    def from_order_shipping_data(
        self,
        settings: EcontSettings,
        order: OrderShippingData,
        sender: Optional[SenderAddress],
        shipment_number: str,
    ) -> Union[CreateLabelRequestParams, Violation]:
        if sender is None:
            return Violation(SENDER_ADDRESS_NOT_FOUND_MESSAGE)

        return CreateLabelRequestParams(
            settings=settings,
            sender=sender,
            receiver=order.shipping_address,
            weight=int_to_float(order.products_weight, 3) or settings.default_weight,
            currency=order.currency,
            cod_amount=int_to_float(order.total_price) if order.is_cash_on_delivery else 0.0,
            declared_value=int_to_float(order.goods_price),
            pack_count=max(1, order.parcels),
            description=order.description,
            shipment_number=shipment_number,
            order_number=order.reference,
        )


class CreateLabelRequestDataMapper:
    def from_params(
        self,
        params: CreateLabelRequestParams,
        agreements: Iterable[CashOnDeliveryAgreement],
    ) -> Union[Dict[str, Any], Violation]:
        """
        Render the Econt label.

        ``agreements`` is only consumed when the label collects cash on
        delivery under an agreement.
        """
        settings = params.settings
        receiver = params.receiver

        label: Dict[str, Any] = {
            "senderClient": {
                "name": params.sender.sender_name,
                "phones": [params.sender.sender_phone] if params.sender.sender_phone else [],
            },
            "receiverClient": {
                "name": receiver.full_name,
                "phones": [receiver.phone],
            },
            "packCount": params.pack_count,
            "shipmentType": settings.shipment_type,
            "weight": params.weight,
            "shipmentDescription": params.description[:SHIPMENT_DESCRIPTION_LIMIT],
            "shipmentNumber": params.shipment_number,
            "orderNumber": params.order_number,
            "payAfterAccept": settings.pay_after_accept,
            "payAfterTest": settings.pay_after_test,
        }

        if settings.sender_office_code:
            label["senderOfficeCode"] = settings.sender_office_code
        else:
            try:
                label["senderAddress"] = self._sender_address(params.sender)
            except ValueError as e:
                return Violation(str(e), path=COUNTRY_PATH)

        if receiver.office_id:
            label["receiverOfficeCode"] = receiver.office_id
        else:
            label["receiverAddress"] = self._receiver_address(receiver)

        services: Dict[str, Any] = {"smsNotification": settings.sms_notification}
        if params.cod_amount > 0:
            services.update({
                "cdAmount": params.cod_amount,
                "cdType": COD_TYPE_GET,
                "cdCurrency": params.currency,
            })
            if settings.use_cash_on_delivery_agreement:
                agreement = self._find_agreement(settings.cash_on_delivery_agreement_number, agreements)
                if isinstance(agreement, Violation):
                    return agreement
                services["cdPayOptionsTemplate"] = agreement.agreement_number
        if settings.declare_value and params.declared_value > 0:
            services.update({
                "declaredValueAmount": params.declared_value,
                "declaredValueCurrency": params.currency,
            })
        label["services"] = services

        return label

    def _find_agreement(
        self,
        number: Optional[str],
        agreements: Iterable[CashOnDeliveryAgreement],
    ) -> Union[CashOnDeliveryAgreement, Violation]:
        try:
            for agreement in agreements:
                if agreement.agreement_number == number:
                    return agreement
        except GatewayError as e:
            return e.violation or Violation(e.message)
        return Violation(COD_AGREEMENT_NOT_FOUND_MESSAGE)

    def _sender_address(self, sender: SenderAddress) -> Dict[str, Any]:
        return {
            "city": {
                "country": {"code3": to_alpha3(sender.country_code)},
                "name": sender.city,
                "postCode": sender.post_code,
            },
            "street": sender.street_name,
            "num": sender.street_number,
        }

    def _receiver_address(self, receiver: ShippingAddress) -> Dict[str, Any]:
        return {
            "city": {
                "country": {"code3": receiver.country},
                "name": receiver.city,
                "postCode": receiver.post_code,
            },
            "street": receiver.address,
            "num": receiver.street_number,
            "other": receiver.address_additions,
        }
