"""
BobGo request payload assemblers.

Assemblers are pure: they take request data, typed settings and the
resolved sender address and return the payload, or a Violation when there
is no sender address to collect from or a country code is unknown.
"""
from typing import Any, Dict, List, Optional, Tuple, Union

from shipment_manager.core.utils import int_to_float
from shipment_manager.models.error import Violation
from shipment_manager.models.order import OrderProductDetail, OrderShippingData
from shipment_manager.models.sender_address import SenderAddress
from shipment_manager.models.shipping import ShippingPriceEstimationRequestData
from shipment_manager.modules.shipping.gateways.bobgo.settings import BobGoSettings
from shipment_manager.services.country_codes import to_alpha2

SENDER_ADDRESS_MISSING_MESSAGE = "SenderAddress object is null."
COUNTRY_PATH = "country"
RATES_TIMEOUT_MS = 10000
SHIPMENTS_TIMEOUT_MS = 20000


def _parcels(products: List[OrderProductDetail], settings: BobGoSettings, description_key: str) -> List[Dict[str, Any]]:
    return [
        {
            description_key: None,
            "submitted_length_cm": settings.default_length,
            "submitted_width_cm": settings.default_width,
            "submitted_height_cm": settings.default_height,
            "submitted_weight_kg": product.weight if product.weight is not None else settings.default_weight,
        }
        for product in products
    ]


def _collection_address(sender: SenderAddress, country: str, local_area: Optional[str]) -> Dict[str, Any]:
    return {
        "street_address": f"{sender.street_number or ''} {sender.street_name or ''}".strip(),
        "company": sender.sender_name,
        "local_area": local_area,
        "city": sender.city,
        "zone": sender.province,
        "country": country,
        "code": sender.post_code,
    }


def _countries(sender: SenderAddress, delivery_country: str) -> Union[Tuple[str, str], Violation]:
    """Alpha-2 codes of the collection and delivery countries."""
    try:
        return to_alpha2(sender.country_code), to_alpha2(delivery_country)
    except ValueError as e:
        return Violation(str(e), path=COUNTRY_PATH)


class BobGoRatesPayloadAssembler:
    def __call__(
        self,
        data: ShippingPriceEstimationRequestData,
        settings: BobGoSettings,
        sender: Optional[SenderAddress],
    ) -> Union[Dict[str, Any], Violation]:
        if sender is None:
            return Violation(SENDER_ADDRESS_MISSING_MESSAGE)

        address = data.shipping_address
        countries = _countries(sender, address.country)
        if isinstance(countries, Violation):
            return countries

        return {
            "providers": [settings.partner_id],
            "service_levels": [settings.default_service_code],
            "collection_address": _collection_address(sender, countries[0], "-"),
            "delivery_address": {
                "company": address.company_name,
                "street_address": address.address,
                "local_area": address.area,
                "city": address.city,
                "zone": address.province,
                "country": countries[1],
                "code": address.post_code,
            },
            "parcels": _parcels(data.product_details, settings, "description"),
            "declared_value": data.total_price,
            "timeout": RATES_TIMEOUT_MS,
            "collection_contact_mobile_number": sender.sender_phone,
            "collection_contact_email": None,
            "collection_contact_full_name": sender.sender_name,
            "delivery_contact_mobile_number": address.phone,
            "delivery_contact_email": None,
            "delivery_contact_full_name": address.full_name,
        }


class BobGoShipmentsPayloadAssembler:
    def __call__(
        self,
        data: OrderShippingData,
        settings: BobGoSettings,
        sender: Optional[SenderAddress],
    ) -> Union[Dict[str, Any], Violation]:
        if sender is None:
            return Violation(SENDER_ADDRESS_MISSING_MESSAGE)

        address = data.shipping_address
        countries = _countries(sender, address.country)
        if isinstance(countries, Violation):
            return countries

        return {
            "timeout": SHIPMENTS_TIMEOUT_MS,
            "collection_address": _collection_address(sender, countries[0], None),
            "collection_contact_name": sender.sender_name,
            "collection_contact_mobile_number": sender.sender_phone,
            "collection_contact_email": None,
            "delivery_address": {
                "company": address.company_name,
                "street_address": f"{address.street_number} {address.address}".strip(),
                "local_area": address.area,
                "city": address.city,
                "zone": address.province,
                "country": countries[1],
                "code": address.post_code,
            },
            "delivery_contact_name": address.full_name,
            "delivery_contact_mobile_number": address.phone,
            "delivery_contact_email": data.customer_email,
            "parcels": _parcels(data.order_product_details, settings, "parcel_description"),
            "declared_value": int_to_float(data.total_price),
            "custom_tracking_reference": data.reference,
            "custom_order_number": data.order_id,
            "instructions_collection": None,
            "instructions_delivery": data.notes,
            "service_level_code": settings.default_service_code,
            "provider_slug": settings.partner_id,
        }


class BobGoWayBillPayloadAssembler:
    def __call__(self, reference: str) -> Dict[str, str]:
        return {
            "tracking_references": reference,
            "paper_size": "A4",
            "waybill_size": "A5",
            "waybills_per_shipment": "1",
            "show_order_items": "false",
            "show_email_address": "false",
        }
