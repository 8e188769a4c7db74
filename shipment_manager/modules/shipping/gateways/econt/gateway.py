"""
Econt Shipping Gateway

Per the Econt e-Econt JSON API (services/*.json):
- One createLabel endpoint serves both price calculation and creation,
  selected by ``mode``
- Basic auth with the tenant's e-Econt username/password
- Demo environment while ``testMode`` is on (default)
- Bulk creation posts every label in one createLabels call; results are
  matched back to orders through the custom shipment number
"""
import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from shipment_manager.core.exceptions import GatewayError
from shipment_manager.core.http_client import ClientOptions, TransportError
from shipment_manager.core.utils import as_dict, as_list, to_ascii
from shipment_manager.models.error import Violation, ViolationList
from shipment_manager.models.order import OrderShippingData
from shipment_manager.models.provider import Provider, ProviderSettingsCredentials
from shipment_manager.models.sender_address import SenderAddress
from shipment_manager.models.shipping import (
    CashOnDeliveryAgreement,
    CashOnDeliveryPolicy,
    CourierOfficeData,
    EcontCourierOfficeFilters,
    ShippingPriceEstimationRequestData,
    ShippingPriceEstimationResponseData,
)
from shipment_manager.models.waybill import (
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
    RestartableSequence,
    ShippingGateway,
    SupportsBulkCreate,
    SupportsCODAgreements,
    SupportsOfficeLookup,
)
from shipment_manager.modules.shipping.gateways.econt.errors import INVALID_RESPONSE_MESSAGE, EcontRequestErrorHandler
from shipment_manager.modules.shipping.gateways.econt.mappers import (
    CreateLabelRequestDataMapper,
    CreateLabelRequestParamsMapper,
)
from shipment_manager.modules.shipping.gateways.econt.settings import EcontSettings
from shipment_manager.services.office_cache import ShippingOfficeCache
from shipment_manager.services.orders_helper import OrdersHelper

logger = logging.getLogger(__name__)

API_URL = "https://ee.econt.com/services/"
API_TEST_URL = "https://demo.econt.com/ee/services/"

URI_CREATE_LABEL = "Shipments/LabelService.createLabel.json"
URI_CREATE_LABELS = "Shipments/LabelService.createLabels.json"
URI_GET_COURIER_OFFICES = "Nomenclatures/NomenclaturesService.getOffices.json"
URI_GET_CLIENT_PROFILES = "Profile/ProfileService.getClientProfiles.json"
URI_SHIPMENT_STATUS = "Shipments/ShipmentService.getShipmentStatuses.json"

MODE_CALCULATE = "calculate"
MODE_CREATE = "create"

INVALID_CREDENTIALS_MESSAGE = "The username or password you provided is incorrect"
SENDER_PLACE_ID = "econt-address"

# Office subtypes not offered to customers: mobile stations, lockers, drive-through
EXCLUDED_OFFICE_FLAGS = ("isMPS", "isAPS", "isDrive")


@register_gateway(Provider.ECONT)
class EcontShippingGateway(ShippingGateway, SupportsBulkCreate, SupportsOfficeLookup, SupportsCODAgreements):
    settings_model = EcontSettings

    def __init__(
        self,
        tenant,
        transport,
        office_cache: ShippingOfficeCache,
        sender_addresses=None,
        orders_helper: Optional[OrdersHelper] = None,
        params_mapper: Optional[CreateLabelRequestParamsMapper] = None,
        data_mapper: Optional[CreateLabelRequestDataMapper] = None,
        error_handler: Optional[EcontRequestErrorHandler] = None,
        translator=None,
    ):
        super().__init__(tenant, transport, sender_addresses=sender_addresses, translator=translator)
        self.office_cache = office_cache
        self.orders_helper = orders_helper or OrdersHelper()
        self.params_mapper = params_mapper or CreateLabelRequestParamsMapper()
        self.data_mapper = data_mapper or CreateLabelRequestDataMapper()
        self.error_handler = error_handler or EcontRequestErrorHandler()

    @classmethod
    def from_dependencies(cls, tenant, transport, dependencies) -> "EcontShippingGateway":
        return cls(
            tenant,
            transport,
            office_cache=dependencies.office_cache(Provider.ECONT.value),
            sender_addresses=dependencies.sender_addresses,
            orders_helper=dependencies.orders_helper,
            translator=dependencies.translator,
        )

    @property
    def provider_name(self) -> str:
        return Provider.ECONT.value

    def get_client_options(self) -> ClientOptions:
        username = self.get_config_var("username")
        password = self.get_config_var("password")
        if not username or not password:
            raise GatewayError("Missing econt username or password")

        return ClientOptions(
            base_url=API_TEST_URL if self.get_config_var("testMode", True) else API_URL,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            auth=(username, password),
        )

    def handle_request_exception(self, exc: TransportError) -> Violation:
        return self.error_handler.handle(exc)

    # -------------------------------------------------------------------------
    # Credentials
    # -------------------------------------------------------------------------

    def validate_credentials(self, credentials: ProviderSettingsCredentials) -> Optional[Violation]:
        self.config = {**self.config, **credentials.to_config()}

        response = self.request("GET", URI_GET_CLIENT_PROFILES)
        if isinstance(response, Violation):
            return Violation(self.translate(INVALID_CREDENTIALS_MESSAGE))

        self._add_sender_addresses(as_dict(response))
        return None

    def _add_sender_addresses(self, response: Dict[str, Any]) -> None:
        """Seed sender addresses from the first profile, only into an empty store."""
        if self.sender_addresses is None or self.sender_addresses.get_count() > 0:
            return

        profiles = as_list(response.get("profiles"))
        if not profiles:
            return
        profile = as_dict(profiles[0])
        client = as_dict(profile.get("client"))
        phones = as_list(client.get("phones")) or [""]

        addresses = [address for address in as_list(profile.get("addresses")) if isinstance(address, dict)]
        for index, address in enumerate(addresses):
            city = as_dict(address.get("city"))
            street = address.get("street") or ""
            self.sender_addresses.save(SenderAddress(
                id=self.sender_addresses.next_identity(),
                short_name=f"{city.get('name', '')} {street}".strip(),
                sender_name=client.get("name", ""),
                sender_phone=phones[0],
                country_code=as_dict(city.get("country")).get("code2", ""),
                city=city.get("name", ""),
                province=city.get("regionName"),
                place_id=SENDER_PLACE_ID,
                post_code=city.get("postCode"),
                street_name=street,
                street_number=address.get("num"),
                is_default=index == 0,
            ))
        logger.info(f"Econt sender addresses imported for tenant {self.tenant.id}")

    # -------------------------------------------------------------------------
    # Price and waybills
    # -------------------------------------------------------------------------

    def calculate_price(
        self, data: ShippingPriceEstimationRequestData
    ) -> Union[ShippingPriceEstimationResponseData, Violation]:
        if self.is_cash_on_delivery_attempted_but_not_allowed(data.cod_amount > 0.0):
            return Violation(COD_NOT_ALLOWED_MESSAGE)

        params = self.params_mapper.from_estimation_request_data(
            self.settings, data, self.get_sender_address(self.settings.default_sender_address_id)
        )
        if isinstance(params, Violation):
            return params
        label = self.data_mapper.from_params(params, self.get_cash_on_delivery_agreements())
        if isinstance(label, Violation):
            return label

        response = self.request("POST", URI_CREATE_LABEL, json={"label": label, "mode": MODE_CALCULATE})
        if isinstance(response, Violation):
            return response

        try:
            total_price = float(as_dict(as_dict(response).get("label"))["totalPrice"])
        except (KeyError, TypeError, ValueError):
            return Violation(INVALID_RESPONSE_MESSAGE)
        return ShippingPriceEstimationResponseData(total_price)

    def create_way_bill(self, order: OrderShippingData) -> Union[CreateWayBillResponseData, Violation]:
        label = self._build_order_label(order)
        if isinstance(label, Violation):
            return label

        response = self.request("POST", URI_CREATE_LABEL, json={"label": label, "mode": MODE_CREATE})
        if isinstance(response, Violation):
            return response

        label = as_dict(as_dict(response).get("label"))
        if not label.get("shipmentNumber"):
            return Violation(INVALID_RESPONSE_MESSAGE)
        info = dict(label)
        info["reference"] = order.reference
        return CreateWayBillResponseData(str(info["shipmentNumber"]), info)

    def create_bulk_way_bill(
        self, orders: List[OrderShippingData]
    ) -> Union[List[CreateWayBillResponseData], Violation]:
        # Profiles are fetched once for the whole batch, and only if a label needs an agreement
        agreements: List[CashOnDeliveryAgreement] = []
        if self.settings.use_cash_on_delivery_agreement and any(order.is_cash_on_delivery for order in orders):
            try:
                agreements = list(self.get_cash_on_delivery_agreements())
            except GatewayError as e:
                return e.violation or Violation(e.message)

        labels = []
        for order in orders:
            label = self._build_order_label(order, agreements)
            if isinstance(label, Violation):
                return label
            labels.append(label)

        response = self.request("POST", URI_CREATE_LABELS, json={"labels": labels, "mode": MODE_CREATE})
        if isinstance(response, Violation):
            return response
        if not isinstance(response, dict):
            return Violation(INVALID_RESPONSE_MESSAGE)

        orders_by_number = {
            self.orders_helper.generate_shipping_number_from_order_id(order.order_id): order
            for order in orders
        }
        results = []
        # Econt may reorder or drop results; match on the shipment number we assigned
        for item in as_list(response.get("results")):
            item = as_dict(item)
            label = as_dict(item.get("label"))
            if not label.get("shipmentNumber"):
                logger.warning(f"Econt bulk result without label: {item.get('error')}")
                continue
            info = dict(label)
            order = orders_by_number.get(str(info["shipmentNumber"]))
            info["reference"] = order.reference if order else None
            results.append(CreateWayBillResponseData(str(info["shipmentNumber"]), info))
        return results

    def _build_order_label(
        self,
        order: OrderShippingData,
        agreements: Optional[Iterable[CashOnDeliveryAgreement]] = None,
    ) -> Union[Dict[str, Any], Violation]:
        if self.is_cash_on_delivery_attempted_but_not_allowed(order.is_cash_on_delivery):
            return Violation(COD_NOT_ALLOWED_MESSAGE)

        params = self.params_mapper.from_order_shipping_data(
            self.settings,
            order,
            self.get_sender_address(self.settings.default_sender_address_id),
            self.orders_helper.generate_shipping_number_from_order_id(order.order_id),
        )
        if isinstance(params, Violation):
            return params
        if agreements is None:
            agreements = self.get_cash_on_delivery_agreements()
        return self.data_mapper.from_params(params, agreements)

    def map_order_id(self, orders, way_bill_response: CreateWayBillResponseData) -> Optional[OrderShippingData]:
        for order in orders:
            number = self.orders_helper.generate_shipping_number_from_order_id(order.order_id)
            if number == way_bill_response.shipping_number:
                return order
        return None

    def download_way_bill(
        self, request: DownloadWayBillRequestData
    ) -> Union[DownloadWayBillResponseData, Violation]:
        pdf_url = (request.shipping_info or {}).get("pdfURL")
        if not pdf_url:
            return Violation(f"Waybill {request.shipping_number} has no label URL")

        response = self.request_raw("GET", pdf_url)
        if isinstance(response, Violation):
            return response
        return DownloadWayBillResponseData("pdf", response.raw_body)

    def map_way_bills(
        self, requests: List[MapWayBillRequestData]
    ) -> Union[List[MapWayBillResponseData], ViolationList]:
        violations = ViolationList()
        mapped = []
        for item in requests:
            info = item.shipping_info or {}
            if not info:
                violations.add(Violation(f"Order {item.order_id} doesn't have shipping information"))
            mapped.append(MapWayBillResponseData(
                order_id=item.order_id,
                shipping_number=item.shipping_number,
                url=info.get("pdfURL", ""),
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
            "POST", URI_SHIPMENT_STATUS, json={"shipmentNumbers": request.shipping_numbers}
        )
        if isinstance(response, Violation):
            return response
        if not isinstance(response, dict):
            return Violation(INVALID_RESPONSE_MESSAGE)

        result = []
        for item in as_list(response.get("shipmentStatuses")):
            item = as_dict(item)
            status = as_dict(item.get("status"))
            shipping_number = _shipment_number(status.get("shipmentNumber"))
            if shipping_number is None:
                logger.warning(f"Econt status entry without shipment number: {item.get('error')}")
                continue

            # COD paid is tracked apart from delivery
            is_paid = False
            if status.get("cdPaidTime"):
                info = as_dict(request.shipping_info.get(str(status["shipmentNumber"])))
                is_paid = _cod_premium_amount(info) > 0

            if status.get("deliveryTime"):
                state = WaybillStatus.DELIVERED
            elif status.get("sendTime"):
                state = WaybillStatus.SHIPPED
            else:
                state = WaybillStatus.PENDING

            result.append(ShipmentStatus(shipping_number, is_paid, state))

        return ShipmentStatusResponseData(result)

    # -------------------------------------------------------------------------
    # COD
    # -------------------------------------------------------------------------

    def get_cash_on_delivery_policy(self) -> CashOnDeliveryPolicy:
        if self.settings is not None and self.settings.cash_on_delivery:
            return CashOnDeliveryPolicy.ALLOWED
        return CashOnDeliveryPolicy.NOT_ALLOWED

    def get_cash_on_delivery_agreements(self) -> RestartableSequence:
        return RestartableSequence(self._iter_cash_on_delivery_agreements)

    def _iter_cash_on_delivery_agreements(self) -> Iterator[CashOnDeliveryAgreement]:
        response = self.request("GET", URI_GET_CLIENT_PROFILES)
        if isinstance(response, Violation):
            raise GatewayError(response.message, violation=response)

        for profile in as_list(as_dict(response).get("profiles")):
            profile = as_dict(profile)
            profile_client_name = as_dict(profile.get("client")).get("name") or ""
            for option in as_list(profile.get("cdPayOptions")):
                option = as_dict(option)
                if option.get("num") is None:
                    continue
                client_name = as_dict(option.get("client")).get("name") or profile_client_name
                yield CashOnDeliveryAgreement(str(option["num"]), client_name)

    # -------------------------------------------------------------------------
    # Offices
    # -------------------------------------------------------------------------

    def get_courier_offices(self, filters: EcontCourierOfficeFilters) -> Union[List[CourierOfficeData], Violation]:
        if not isinstance(filters, EcontCourierOfficeFilters):
            raise TypeError(
                f"Unexpected filters type. Expected EcontCourierOfficeFilters, got {type(filters).__name__}."
            )

        offices = self.office_cache.find(filters.country, filters.address)
        if offices is not None:
            return offices

        response = self.request("POST", URI_GET_COURIER_OFFICES, json={"countryCode": filters.country})
        if isinstance(response, Violation):
            return response
        if not isinstance(response, dict):
            return Violation(INVALID_RESPONSE_MESSAGE)

        normalized = [
            self._office_from_dict(office)
            for office in as_list(response.get("offices"))
            if isinstance(office, dict)
            and office.get("code") is not None
            and not any(office.get(flag) is True for flag in EXCLUDED_OFFICE_FLAGS)
        ]
        self.office_cache.save(filters.country, normalized)

        return self.office_cache.find(filters.country, filters.address) or []

    def _office_from_dict(self, office: Dict[str, Any]) -> CourierOfficeData:
        address = as_dict(office.get("address"))
        city = as_dict(address.get("city"))
        return CourierOfficeData(
            office_id=str(office["code"]),
            office_code=str(office["code"]),
            name=office.get("name") or "",
            area=city.get("regionName") or "",
            city_id=str(city.get("id", "")),
            city_name=city.get("name") or "",
            city_code=str(city.get("postCode") or ""),
            address=address.get("fullAddress") or "",
            address_en=address.get("fullAddressEn") or to_ascii(address.get("fullAddress") or ""),
            city_en=city.get("nameEn") or "",
        )


def _shipment_number(value: Any) -> Optional[str]:
    """Econt echoes shipment numbers as ints or zero padded strings."""
    try:
        return str(int(value))
    except (TypeError, ValueError):
        return None


def _cod_premium_amount(shipping_info: Dict[str, Any]) -> float:
    """COD premium of a stored create response, 0 when absent."""
    details = as_dict(as_dict(shipping_info.get("price")).get("details"))
    try:
        return float(as_dict(details.get("codPremium")).get("amount") or 0)
    except (TypeError, ValueError):
        return 0.0
