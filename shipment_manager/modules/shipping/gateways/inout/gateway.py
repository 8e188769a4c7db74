"""
InOut Shipping Gateway

InOut is a broker: a tenant picks one of its companies, then one of the
couriers that company works with, then (optionally) a courier office.
- Bearer token auth; sandbox token and company while ``testMode`` is on
- companyId and courierId are mandatory provider settings
- Quoted prices get the delivery tax on top (x1.2)
"""
import base64
import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence, Union

from shipment_manager.core.config import settings as app_settings
from shipment_manager.core.exceptions import GatewayError
from shipment_manager.core.http_client import ClientOptions, HTTPStatusError, TransportError
from shipment_manager.core.utils import as_dict, as_list, int_to_float, to_ascii
from shipment_manager.models.error import Violation, ViolationList
from shipment_manager.models.order import OrderShippingData
from shipment_manager.models.provider import Provider, ProviderSettingsCredentials
from shipment_manager.models.shipping import (
    CompanyData,
    CourierData,
    CourierOfficeData,
    InOutCourierOfficeFilters,
    ShippingPriceEstimationRequestData,
    ShippingPriceEstimationResponseData,
)
from shipment_manager.models.waybill import (
    BulkWayBillFailure,
    CreateWayBillResponseData,
    DownloadWayBillRequestData,
    DownloadWayBillResponseData,
    MapWayBillRequestData,
    MapWayBillResponseData,
    ShipmentStatus,
    ShipmentStatusRequestData,
    ShipmentStatusResponseData,
    WaybillStatus,
)
from shipment_manager.modules.shipping.gateways import register_gateway
from shipment_manager.modules.shipping.gateways.base import (
    COD_NOT_ALLOWED_MESSAGE,
    ShippingGateway,
    SupportsBulkCreate,
    SupportsCourierDiscovery,
    SupportsOfficeLookup,
)
from shipment_manager.modules.shipping.gateways.inout.modifiers import DEFAULT_WAY_BILL_DATA_MODIFIERS
from shipment_manager.modules.shipping.gateways.inout.settings import InOutSettings
from shipment_manager.services.country_codes import to_alpha2

logger = logging.getLogger(__name__)

API_URL = "https://api1.inout.bg/api/v1/"
SHIPPING_SERVICE_NAME = "crossborder"  # or eushipmentexpress

URI_GET_COMPANIES = "get-user-companies"
URI_GET_COMPANY_COURIERS = "couriers/{company_id}"
URI_GET_COURIER_OFFICES = "offices-by-courier/{courier_id}"
URI_CREATE_WAY_BILL = "createAWB"
URI_DOWNLOAD_WAY_BILL = "print/{shipping_number}"
URI_ESTIMATE_PRICE = "shipment-price"
URI_WAY_BILL_HISTORY = "fulfilment/waybills-history"
URI_GET_CITIES = "get-cities/{country_id}"
BG_COUNTRY_ID = 2

DELIVERY_TAX_PERCENT = 1.2
# BGN per EUR and the matching price factor for tenants with currency conversion
CONVERSION_RATE = 1.95522
CONVERTED_PRICE_FACTOR = 0.61374

DESCRIPTION_LIMIT = 1000
OFFICE_PREFIX = "to office: "

INVALID_REQUEST_MESSAGE = "Gateway invalid request"
INVALID_RESPONSE_MESSAGE = "Gateway invalid response"
INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"
COUNTRY_PATH = "country"
COD_PAID_STATUSES = ("COD paid", "Delivered")

INOUT_STATUS_MAP = {
    # Pending
    "In the office": WaybillStatus.PENDING,
    "New": WaybillStatus.PENDING,
    "Stockout": WaybillStatus.PENDING,
    "Packed": WaybillStatus.PENDING,
    "Information received": WaybillStatus.PENDING,
    "Awaiting pickup": WaybillStatus.PENDING,
    "Insufficient data - AWB not created": WaybillStatus.PENDING,
    "Information sent to warehouse": WaybillStatus.PENDING,
    "PreAlert": WaybillStatus.PENDING,
    "Warehouse": WaybillStatus.PENDING,
    "Warehouse Budapest": WaybillStatus.PENDING,
    "Warehouse Sofia": WaybillStatus.PENDING,
    "Warehouse Zagreb": WaybillStatus.PENDING,
    # In transit
    "On delivery": WaybillStatus.SHIPPED,
    "In transit": WaybillStatus.SHIPPED,
    "Redirected": WaybillStatus.SHIPPED,
    "Warehouse Ruse": WaybillStatus.SHIPPED,
    "Returning": WaybillStatus.SHIPPED,
    "Scanned Waybill": WaybillStatus.SHIPPED,
    "Lastmile Accept": WaybillStatus.SHIPPED,
    # Delivered
    "Delivered": WaybillStatus.DELIVERED,
    "COD paid": WaybillStatus.DELIVERED,
    "Claim opened": WaybillStatus.DELIVERED,
    # Terminal failures
    "Returned": WaybillStatus.CANCELED,
    "Canceled": WaybillStatus.CANCELED,
    "Lost shipment": WaybillStatus.CANCELED,
    "Deleted": WaybillStatus.CANCELED,
    "Compenstaed courier fee": WaybillStatus.CANCELED,
    "Damaged shipment": WaybillStatus.CANCELED,
    "Destroyed": WaybillStatus.CANCELED,
    "Returned to Warehouse": WaybillStatus.CANCELED,
    "Rejected by courier": WaybillStatus.CANCELED,
    "Returned to Client": WaybillStatus.CANCELED,
}


@register_gateway(Provider.INOUT)
class InOutShippingGateway(ShippingGateway, SupportsBulkCreate, SupportsOfficeLookup, SupportsCourierDiscovery):
    settings_model = InOutSettings
    invalid_settings_message = "Missing or invalid companyId and/or courierId"

    def __init__(self, tenant, transport, way_bill_data_modifiers: Optional[Sequence] = None, translator=None):
        super().__init__(tenant, transport, translator=translator)
        self.way_bill_data_modifiers = (
            DEFAULT_WAY_BILL_DATA_MODIFIERS if way_bill_data_modifiers is None else way_bill_data_modifiers
        )

    @classmethod
    def from_dependencies(cls, tenant, transport, dependencies) -> "InOutShippingGateway":
        return cls(tenant, transport, translator=dependencies.translator)

    @property
    def provider_name(self) -> str:
        return Provider.INOUT.value

    def get_client_options(self) -> ClientOptions:
        token = self.get_config_var("token")
        if token is None:
            raise GatewayError("Invalid inout token")

        # Test mode always talks to the sandbox account
        if self.get_config_var("testMode", True):
            token = app_settings.INOUT_TEST_TOKEN
        if not token:
            raise GatewayError("Invalid inout token")

        return ClientOptions(base_url=API_URL, bearer_token=token)

    def handle_request_exception(self, exc: TransportError) -> Violation:
        return Violation(INVALID_REQUEST_MESSAGE)

    def get_settings(self) -> InOutSettings:
        """Provider settings with the sandbox company swapped in for test mode."""
        if self.get_config_var("testMode", True):
            return self.settings.model_copy(update={"company_id": app_settings.INOUT_TEST_COMPANY_ID})
        return self.settings

    def status_mapping(self) -> Dict[Any, WaybillStatus]:
        return INOUT_STATUS_MAP

    # -------------------------------------------------------------------------
    # Credentials and discovery
    # -------------------------------------------------------------------------

    def validate_credentials(self, credentials: ProviderSettingsCredentials) -> Optional[Violation]:
        try:
            self.transport.request(
                "GET",
                URI_GET_COMPANIES,
                options=ClientOptions(base_url=API_URL, bearer_token=credentials.token),
                params={"testMode": "false"},
            )
        except HTTPStatusError as e:
            logger.warning(f"InOut credentials rejected: HTTP {e.response.status}")
            return Violation(self.translate(INVALID_CREDENTIALS_MESSAGE))
        except TransportError as e:
            logger.critical(f"Gateway request error: {e}")
            return Violation(self.translate(INVALID_CREDENTIALS_MESSAGE))
        return None

    def get_companies(self) -> Union[List[CompanyData], Violation]:
        response = self.request("GET", URI_GET_COMPANIES)
        if isinstance(response, Violation):
            return response
        if not isinstance(response, list):
            return Violation(INVALID_RESPONSE_MESSAGE)

        return [
            CompanyData(
                id=company["ID"],
                name=company.get("NAME") or "",
                bulstat=company.get("BULSTAT") or "",
                address=company.get("ADDRESS") or "",
                mol=company.get("MOL") or "",
            )
            for company in _records(response)
        ]

    def get_couriers(self, company_id: int) -> Union[List[CourierData], Violation]:
        response = self.request("GET", URI_GET_COMPANY_COURIERS.format(company_id=company_id))
        if isinstance(response, Violation):
            return response
        if not isinstance(response, list):
            return Violation(INVALID_RESPONSE_MESSAGE)

        return [
            CourierData(
                id=courier["ID"],
                name=f"{courier.get('NAME') or ''} (InOut)",
                to_office=bool(courier.get("TO_OFFICE")),
                to_address=bool(courier.get("TO_ADDRESS")),
            )
            for courier in _records(response)
        ]

    def get_courier_offices(self, filters: InOutCourierOfficeFilters) -> Union[List[CourierOfficeData], Violation]:
        if not isinstance(filters, InOutCourierOfficeFilters):
            raise TypeError(
                f"Unexpected filters type. Expected InOutCourierOfficeFilters, got {type(filters).__name__}."
            )

        response = self.request("GET", URI_GET_COURIER_OFFICES.format(courier_id=filters.courier_id))
        if isinstance(response, Violation):
            return response
        if not isinstance(response, list):
            return Violation(INVALID_RESPONSE_MESSAGE)

        needle = to_ascii(filters.address or "").lower()
        offices = [self._office_from_dict(office) for office in _records(response)]
        return [office for office in offices if needle in office.address_en.lower()]

    def _office_from_dict(self, office: Dict[str, Any]) -> CourierOfficeData:
        return CourierOfficeData(
            office_id=str(office["ID"]),
            office_code=str(office.get("COURIER_OFFICE_CODE") or ""),
            name=office.get("OFFICE_NAME") or "",
            area=office.get("REGION") or "",
            city_id=str(office.get("CITY_ID") or ""),
            city_name=office.get("CITY_NAME") or "",
            city_code=str(office.get("POST_CODE") or ""),
            address=office.get("ADDRESS") or "",
            address_en=to_ascii(office.get("ADDRESS") or ""),
        )

    # -------------------------------------------------------------------------
    # Price and waybills
    # -------------------------------------------------------------------------

    def calculate_price(
        self, data: ShippingPriceEstimationRequestData
    ) -> Union[ShippingPriceEstimationResponseData, Violation]:
        if self.is_cash_on_delivery_attempted_but_not_allowed(data.cod_amount > 0.0):
            return Violation(COD_NOT_ALLOWED_MESSAGE)

        settings = self.get_settings()
        cod_amount = data.cod_amount
        insurance_amount = 0.0
        if settings.currency_conversion:
            insurance_amount = round(data.insurance_amount * CONVERSION_RATE, 2)
            if cod_amount > 0:
                cod_amount = round(cod_amount * CONVERSION_RATE, 2)

        params = {
            "weight": max(0.1, int_to_float(data.weight, 3)),
            "codAmount": cod_amount,
            "insuranceAmount": insurance_amount,
            "openPackage": settings.open_package,
            "toOffice": data.to_office,
            "currency": data.currency,
            "companyId": settings.company_id,
            "courierId": settings.courier_id,
            "returnDocs": settings.return_docs,
            "saturdayDelivery": settings.saturday_delivery,
        }

        response = self.request("POST", URI_ESTIMATE_PRICE, json=params)
        if isinstance(response, Violation):
            return response

        try:
            price = float(as_dict(response)["price"])
        except (KeyError, TypeError, ValueError):
            return Violation(INVALID_RESPONSE_MESSAGE)
        if settings.currency_conversion:
            price *= CONVERTED_PRICE_FACTOR
        else:
            price = round(price * DELIVERY_TAX_PERCENT, 2)

        return ShippingPriceEstimationResponseData(price)

    def create_way_bill(self, order: OrderShippingData) -> Union[CreateWayBillResponseData, Violation]:
        if self.is_cash_on_delivery_attempted_but_not_allowed(order.is_cash_on_delivery):
            return Violation(COD_NOT_ALLOWED_MESSAGE)

        data = self._build_way_bill_data(order)
        if isinstance(data, Violation):
            return data
        for modifier in self.way_bill_data_modifiers:
            modifier(data)
        self._check_address(data)

        response = self.request("POST", URI_CREATE_WAY_BILL, json=data)
        if isinstance(response, Violation):
            return response

        if not isinstance(response, dict) or not response.get("awb"):
            return Violation(INVALID_RESPONSE_MESSAGE)
        return CreateWayBillResponseData(str(response["awb"]), {"reference": order.reference})

    def _build_way_bill_data(self, order: OrderShippingData) -> Union[Dict[str, Any], Violation]:
        settings = self.get_settings()
        address = order.shipping_address
        contact_name = address.full_name
        try:
            country = to_alpha2(address.country)
        except ValueError as e:
            return Violation(str(e), path=COUNTRY_PATH)

        # InOut routes to an office when the street carries the "to office: " keyword
        prefix = OFFICE_PREFIX if address.office_id else ""

        cod_amount = int_to_float(order.total_price) if order.is_cash_on_delivery else 0.0
        insurance_amount = 0.0
        if settings.currency_conversion:
            insurance_amount = round(int_to_float(order.goods_price) * CONVERSION_RATE, 2)
            if cod_amount > 0:
                cod_amount = round(cod_amount * CONVERSION_RATE, 2)

        return {
            "testMode": False,
            "senderId": settings.company_id,
            "courierId": settings.courier_id,
            "waybillAvailableDate": (date.today() + timedelta(days=1)).isoformat(),
            "serviceName": self.get_config_var("serviceName", SHIPPING_SERVICE_NAME),
            "recipient": {
                "name": contact_name,
                "countryIsoCode": country,
                "region": address.area,
                "cityName": address.city,
                "zipCode": address.post_code,
                "streetName": prefix + address.address,
                "addressText": address.address_additions,
                "contactPerson": contact_name,
                "phoneNumber": address.phone,
                "email": order.customer_email,
            },
            "awb": {
                "parcels": order.parcels,
                "envelopes": 0,
                "totalWeight": max(0.01, int_to_float(order.products_weight, 3)),
                "declaredValue": insurance_amount,
                "bankRepayment": cod_amount,
                "otherRepayment": "",
                "observations": "",
                "openPackage": order.open_package or settings.open_package,
                "referenceNumber": order.reference,
                "products": order.description[:DESCRIPTION_LIMIT],
                "fragile": settings.is_fragile,
                "productsInfo": order.notes,
                "piecesInPack": order.products_quantity,
                "saturdayDelivery": settings.saturday_delivery,
            },
            "returnLabel": {
                "nDaysValid": 0,
            },
        }

    def _check_address(self, data: Dict[str, Any]) -> None:
        """Replace a Bulgarian recipient's zip with the one InOut has for the city."""
        recipient = data["recipient"]
        if recipient["countryIsoCode"] != "BG":
            return

        cities = self.request("GET", URI_GET_CITIES.format(country_id=BG_COUNTRY_ID))
        if isinstance(cities, Violation):
            # Keep the customer's zip code
            return

        needle = (recipient.get("cityName") or "").upper().replace(" CITY", "")
        for city in as_list(cities):
            city = as_dict(city)
            if not city.get("POSTAL_CODE"):
                continue
            if needle in (city.get("CITY_NAME_EN") or "").upper() or needle in (city.get("CITY_NAME_LOCAL") or "").upper():
                recipient["zipCode"] = city["POSTAL_CODE"]
                return

    def create_bulk_way_bill(
        self, orders: List[OrderShippingData]
    ) -> List[Union[CreateWayBillResponseData, BulkWayBillFailure]]:
        results = []
        for order in orders:
            response = self.create_way_bill(order)
            if isinstance(response, Violation):
                results.append(BulkWayBillFailure(reference=order.reference, message=response.message))
                continue
            results.append(response)
        return results

    def download_way_bill(
        self, request: DownloadWayBillRequestData
    ) -> Union[DownloadWayBillResponseData, Violation]:
        response = self.request(
            "GET",
            URI_DOWNLOAD_WAY_BILL.format(shipping_number=request.shipping_number),
            params={"testMode": "false"},
        )
        if isinstance(response, Violation):
            return response
        if not isinstance(response, dict) or not response.get("awb_print"):
            return Violation(INVALID_RESPONSE_MESSAGE)

        try:
            content = base64.b64decode(response["awb_print"])
        except (TypeError, ValueError):
            return Violation(INVALID_RESPONSE_MESSAGE)
        return DownloadWayBillResponseData(type=str(response.get("type") or "pdf").lower(), content=content)

    def map_way_bills(
        self, requests: List[MapWayBillRequestData]
    ) -> Union[List[MapWayBillResponseData], ViolationList]:
        violations = ViolationList()
        mapped = []
        for item in requests:
            info = item.shipping_info or {}
            way_bill = self.download_way_bill(DownloadWayBillRequestData(item.shipping_number, info))
            if isinstance(way_bill, Violation):
                violations.add(way_bill)
                continue

            mapped.append(MapWayBillResponseData(
                order_id=item.order_id,
                shipping_number=item.shipping_number,
                url=base64.b64encode(way_bill.content).decode("ascii"),
                type=self.default_file_type,
                reference=info.get("reference") or "",
                provider=self.provider_name,
            ))
        return violations if violations else mapped

    # -------------------------------------------------------------------------
    # Tracking
    # -------------------------------------------------------------------------

    def get_shipment_status(
        self, request: ShipmentStatusRequestData
    ) -> Union[ShipmentStatusResponseData, Violation]:
        response = self.request(
            "POST",
            URI_WAY_BILL_HISTORY,
            json={"testMode": False, "awbs": [{"awb": number} for number in request.shipping_numbers]},
        )
        if isinstance(response, Violation):
            return response
        if not isinstance(response, list):
            return Violation(INVALID_RESPONSE_MESSAGE)

        result = []
        for awb in response:
            awb = as_dict(awb)
            history = as_list(awb.get("statusesHistory"))
            if awb.get("errorCode") or not history or awb.get("awb") is None:
                continue

            native_status = as_dict(history[-1]).get("STATUS")
            status = self.get_status_mapping(native_status)
            if not status:
                logger.warning(f"InOut status {native_status!r} for {awb['awb']} is not mapped")
                continue

            # COD paid follows the last status only
            result.append(ShipmentStatus(
                shipping_number=str(awb["awb"]),
                is_paid=native_status in COD_PAID_STATUSES,
                status=WaybillStatus(status),
            ))

        return ShipmentStatusResponseData(result)


def _records(rows: List[Any]) -> List[Dict[str, Any]]:
    """Rows of an InOut listing that carry an ID; malformed rows are dropped."""
    return [row for row in rows if isinstance(row, dict) and row.get("ID") is not None]
