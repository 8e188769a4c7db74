"""
Base Shipping Gateway

Every carrier implements the core operations below. Optional capabilities
(bulk creation, office lookup, COD agreements, courier discovery) are
declared by mixing in the matching ``Supports*`` class so callers can
feature-detect them with ``supports()``.

Failure contract:
- Remote and business failures are returned as Violation / ViolationList.
- Only integration-time misconfiguration raises (TenantIdError,
  TenantProvidersError, InvalidProviderError).
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from shipment_manager.core.exceptions import GatewayError, TenantIdError, TenantProvidersError
from shipment_manager.core.http_client import (
    ClientOptions,
    HTTPStatusError,
    HttpTransport,
    TransportError,
    TransportResponse,
)
from shipment_manager.core.logging_config import mask_secrets
from shipment_manager.core.tenant_config import find_provider_config
from shipment_manager.models.error import Violation, ViolationList
from shipment_manager.models.order import OrderShippingData
from shipment_manager.models.provider import ProviderSettings, ProviderSettingsCredentials, Tenant
from shipment_manager.models.sender_address import SenderAddress
from shipment_manager.models.shipping import (
    CashOnDeliveryAgreement,
    CashOnDeliveryPolicy,
    CompanyData,
    CourierData,
    CourierOfficeData,
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
    ShipmentStatusRequestData,
    ShipmentStatusResponseData,
    WaybillStatus,
)
from shipment_manager.services.sender_address_repository import SenderAddressRepository

logger = logging.getLogger(__name__)

INVALID_CONFIGURATION_MESSAGE = "Invalid gateway configuration."
NOT_IMPLEMENTED_MESSAGE = "Method not implemented for provider."
COD_NOT_ALLOWED_MESSAGE = "Cash on delivery is not allowed"
SENDER_ADDRESS_NOT_FOUND_MESSAGE = "Sender address not found"

Translator = Callable[[str], str]


class CarrierSettings(BaseModel):
    """
    Typed provider settings. Carriers subclass with their own fields;
    camelCase keys from stored settings are accepted through aliases.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class ShippingGateway(ABC):
    """
    Abstract base class for all carrier gateways.

    A gateway instance is request scoped: it holds the tenant's provider
    config and settings and is not meant to be shared across requests.
    """

    settings_model: Type[CarrierSettings] = CarrierSettings
    invalid_settings_message = "Invalid provider settings"
    default_file_type = "application/pdf"

    def __init__(
        self,
        tenant: Optional[Tenant],
        transport: HttpTransport,
        sender_addresses: Optional[SenderAddressRepository] = None,
        translator: Optional[Translator] = None,
    ):
        """
        Initialize the gateway.

        Args:
            tenant: Current tenant with its decrypted app configuration
            transport: Outbound HTTP transport
            sender_addresses: Tenant sender address store
            translator: Message translator, identity when omitted
        """
        self.transport = transport
        self.sender_addresses = sender_addresses
        self.translate: Translator = translator or (lambda message: message)
        self.config: Dict[str, Any] = {}
        self.provider_settings: Optional[ProviderSettings] = None
        self.custom_settings: Optional[Dict[str, Any]] = None
        self.settings: Optional[CarrierSettings] = None
        self.configure(tenant)

    # -------------------------------------------------------------------------
    # Carrier identity and wiring
    # -------------------------------------------------------------------------

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Key of this carrier inside the tenant app configuration."""
        pass

    @abstractmethod
    def get_client_options(self) -> ClientOptions:
        """
        Build base URL and auth material from ``config``.

        Raises:
            GatewayError: Config is missing something the carrier needs
        """
        pass

    @abstractmethod
    def handle_request_exception(self, exc: TransportError) -> Violation:
        """Convert a transport failure into a carrier flavored Violation."""
        pass

    def configure(self, tenant: Optional[Tenant]) -> None:
        if tenant is None:
            raise TenantIdError()
        self.tenant = tenant
        self.config = find_provider_config(tenant.apps, self.provider_name)

    def set_provider_settings(
        self,
        provider_settings: ProviderSettings,
        custom_settings: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Attach and validate tenant settings for this provider.

        Raises:
            TenantProvidersError: Mandatory settings missing or invalid
        """
        self.provider_settings = provider_settings
        self.custom_settings = custom_settings
        try:
            self.settings = self.settings_model.model_validate(
                provider_settings.merged_with(custom_settings)
            )
        except ValidationError as e:
            fields = [".".join(str(part) for part in error["loc"]) for error in e.errors()]
            raise TenantProvidersError(
                self.invalid_settings_message,
                details={"provider": self.provider_name, "fields": fields},
            ) from e

    def get_config_var(self, name: str, default: Any = None) -> Any:
        value = self.config.get(name)
        return default if value is None else value

    # -------------------------------------------------------------------------
    # Outbound calls
    # -------------------------------------------------------------------------

    def request(
        self,
        method: str,
        url: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Union[Any, Violation]:
        """
        Issue a JSON call with the carrier's client options.

        Returns:
            Decoded response body, or the Violation produced by
            ``handle_request_exception``. Never raises for remote failures.
        """
        options = self._client_options_or_none()
        if options is None:
            return Violation(INVALID_CONFIGURATION_MESSAGE)

        logger.debug(
            f"Gateway request: {method} {url} data={json or params} "
            f"config={mask_secrets(self.config)}"
        )
        try:
            return self.transport.request_json(method, url, options=options, json=json, params=params)
        except HTTPStatusError as e:
            logger.critical(
                f"Gateway response error: {e} code={e.response.status} response={e.response.text}"
            )
            return self.handle_request_exception(e)
        except TransportError as e:
            logger.critical(f"Gateway request error: {e}")
            return self.handle_request_exception(e)

    def request_raw(self, method: str, url: str, **kwargs) -> Union[TransportResponse, Violation]:
        """Issue a call whose body is not JSON (labels, PDFs)."""
        options = self._client_options_or_none()
        if options is None:
            return Violation(INVALID_CONFIGURATION_MESSAGE)

        logger.debug(f"Gateway request: {method} {url}")
        try:
            return self.transport.request(method, url, options=options, **kwargs)
        except HTTPStatusError as e:
            logger.critical(
                f"Gateway response error: {e} code={e.response.status} response={e.response.text}"
            )
            return self.handle_request_exception(e)
        except TransportError as e:
            logger.critical(f"Gateway request error: {e}")
            return self.handle_request_exception(e)

    def _client_options_or_none(self) -> Optional[ClientOptions]:
        try:
            return self.get_client_options()
        except GatewayError as e:
            logger.error(f"{self.provider_name}: {e.message}")
            return None

    # -------------------------------------------------------------------------
    # Core operations
    # -------------------------------------------------------------------------

    @abstractmethod
    def validate_credentials(self, credentials: ProviderSettingsCredentials) -> Optional[Violation]:
        """Check credentials with the carrier. None means valid."""
        pass

    @abstractmethod
    def calculate_price(
        self, data: ShippingPriceEstimationRequestData
    ) -> Union[ShippingPriceEstimationResponseData, Violation]:
        pass

    @abstractmethod
    def create_way_bill(self, order: OrderShippingData) -> Union[CreateWayBillResponseData, Violation]:
        pass

    @abstractmethod
    def download_way_bill(
        self, request: DownloadWayBillRequestData
    ) -> Union[DownloadWayBillResponseData, Violation]:
        pass

    def get_shipment_status(
        self, request: ShipmentStatusRequestData
    ) -> Union[ShipmentStatusResponseData, Violation]:
        return Violation(NOT_IMPLEMENTED_MESSAGE)

    def create_bulk_way_bill(
        self, orders: List[OrderShippingData]
    ) -> Union[List[Union[CreateWayBillResponseData, BulkWayBillFailure]], Violation]:
        return Violation(NOT_IMPLEMENTED_MESSAGE)

    def map_way_bills(
        self, requests: List[MapWayBillRequestData]
    ) -> Union[List[MapWayBillResponseData], ViolationList, Violation]:
        return Violation(NOT_IMPLEMENTED_MESSAGE)

    # -------------------------------------------------------------------------
    # Policy
    # -------------------------------------------------------------------------

    def get_cash_on_delivery_policy(self) -> CashOnDeliveryPolicy:
        return CashOnDeliveryPolicy.NO_POLICY

    def is_cash_on_delivery_attempted_but_not_allowed(self, attempted: bool) -> bool:
        return attempted and self.get_cash_on_delivery_policy() == CashOnDeliveryPolicy.NOT_ALLOWED

    def status_mapping(self) -> Dict[Any, WaybillStatus]:
        """Carrier native status token -> normalized status."""
        return WaybillStatus.default_mapping()

    def get_status_mapping(self, provider_status: Any) -> str:
        """Normalized status value for a native token, "" when unmapped."""
        if not isinstance(provider_status, (str, int, float)):
            return ""
        mapping = self.status_mapping()
        status = mapping.get(provider_status)
        if status is None:
            status = mapping.get(str(provider_status))
        return status.value if status is not None else ""

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def map_order_id(
        self,
        orders: Iterable[OrderShippingData],
        way_bill_response: CreateWayBillResponseData,
    ) -> Optional[OrderShippingData]:
        """Order whose reference matches the waybill, None if there is none."""
        reference = way_bill_response.shipping_info.get("reference")
        for order in orders:
            if order.reference == reference:
                return order
        return None

    def get_sender_address(self, address_id: Optional[str] = None) -> Optional[SenderAddress]:
        """Sender address by id, falling back to the tenant default."""
        if self.sender_addresses is None:
            return None
        if address_id:
            return self.sender_addresses.find_one_by_id(address_id)
        return self.sender_addresses.find_default_address()


# =============================================================================
# Capabilities
# =============================================================================

class SupportsBulkCreate(ABC):
    @abstractmethod
    def create_bulk_way_bill(
        self, orders: List[OrderShippingData]
    ) -> Union[List[Union[CreateWayBillResponseData, BulkWayBillFailure]], Violation]:
        pass


class SupportsOfficeLookup(ABC):
    @abstractmethod
    def get_courier_offices(self, filters: Any) -> Union[List[CourierOfficeData], Violation]:
        pass


class SupportsCODAgreements(ABC):
    @abstractmethod
    def get_cash_on_delivery_agreements(self) -> Iterable[CashOnDeliveryAgreement]:
        """
        Restartable lazy sequence of the tenant's COD agreements.

        Iteration raises GatewayError when the underlying fetch fails.
        """
        pass


class SupportsCourierDiscovery(ABC):
    @abstractmethod
    def get_companies(self) -> Union[List[CompanyData], Violation]:
        pass

    @abstractmethod
    def get_couriers(self, company_id: int) -> Union[List[CourierData], Violation]:
        pass


def supports(gateway: ShippingGateway, capability: type) -> bool:
    """Feature detection for optional gateway capabilities."""
    return isinstance(gateway, capability)


class RestartableSequence:
    """
    Finite lazy sequence that starts over on every iteration.

    Each ``iter()`` calls ``factory`` for a fresh generator, so a partially
    consumed pass does not affect the next one.
    """

    def __init__(self, factory: Callable[[], Iterator]):
        self._factory = factory

    def __iter__(self) -> Iterator:
        return self._factory()
