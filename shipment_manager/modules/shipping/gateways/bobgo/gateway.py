"""
BobGo Shipping Gateway

See https://api-docs.bob.co.za/bobgo

The gateway only wires things together: every capability lives in its own
operation object (operations.py) which talks back to the gateway through a
ShippingGatewayProxy. Production is used unless ``testMode`` is set.
"""
import logging
from typing import Any, Dict, Optional, Union

from shipment_manager.core.exceptions import GatewayError
from shipment_manager.core.http_client import ClientOptions, TransportError
from shipment_manager.models.error import Violation
from shipment_manager.models.order import OrderShippingData
from shipment_manager.models.provider import Provider, ProviderSettingsCredentials
from shipment_manager.models.shipping import ShippingPriceEstimationRequestData, ShippingPriceEstimationResponseData
from shipment_manager.models.waybill import (
    CreateWayBillResponseData,
    DownloadWayBillRequestData,
    DownloadWayBillResponseData,
    ShipmentStatusRequestData,
    ShipmentStatusResponseData,
    WaybillStatus,
)
from shipment_manager.modules.shipping.gateways import register_gateway
from shipment_manager.modules.shipping.gateways.base import COD_NOT_ALLOWED_MESSAGE, ShippingGateway
from shipment_manager.modules.shipping.gateways.bobgo.endpoints import BobGoApiEndpointGenerator
from shipment_manager.modules.shipping.gateways.bobgo.operations import (
    INVALID_RESPONSE_MESSAGE,
    BobGoCalculatePrice,
    BobGoCreateWayBill,
    BobGoDownloadWayBill,
    BobGoGetShipmentStatus,
    BobGoValidateCredentials,
)
from shipment_manager.modules.shipping.gateways.bobgo.settings import BobGoSettings
from shipment_manager.modules.shipping.gateways.proxy import ShippingGatewayProxy

logger = logging.getLogger(__name__)

BOBGO_STATUS_MAP = {
    "pending-collection": WaybillStatus.PENDING,
    "collection-assigned": WaybillStatus.PENDING,
    "collection-unsuccessful": WaybillStatus.PENDING,
    "collected": WaybillStatus.SHIPPED,
    "at-origin-hub": WaybillStatus.SHIPPED,
    "in-transit": WaybillStatus.SHIPPED,
    "at-destination-hub": WaybillStatus.SHIPPED,
    "out-for-delivery": WaybillStatus.SHIPPED,
    "delivery-unsuccessful": WaybillStatus.SHIPPED,
    "delivered": WaybillStatus.DELIVERED,
    "cancelled": WaybillStatus.CANCELED,
    "returned-to-sender": WaybillStatus.CANCELED,
}


@register_gateway(Provider.BOBGO)
class BobGoShippingGateway(ShippingGateway):
    settings_model = BobGoSettings
    invalid_settings_message = "Missing or invalid partnerId and/or defaultServiceCode"

    def __init__(
        self,
        tenant,
        transport,
        sender_addresses=None,
        endpoints: Optional[BobGoApiEndpointGenerator] = None,
        translator=None,
    ):
        super().__init__(tenant, transport, sender_addresses=sender_addresses, translator=translator)
        endpoints = endpoints or BobGoApiEndpointGenerator()
        proxy = ShippingGatewayProxy(self)

        self.validate_credentials_operation = BobGoValidateCredentials(proxy, endpoints)
        self.calculate_price_operation = BobGoCalculatePrice(proxy, endpoints)
        self.create_way_bill_operation = BobGoCreateWayBill(proxy, endpoints)
        self.download_way_bill_operation = BobGoDownloadWayBill(proxy, endpoints)
        self.get_shipment_status_operation = BobGoGetShipmentStatus(proxy, endpoints)

    @classmethod
    def from_dependencies(cls, tenant, transport, dependencies) -> "BobGoShippingGateway":
        return cls(
            tenant,
            transport,
            sender_addresses=dependencies.sender_addresses,
            translator=dependencies.translator,
        )

    @property
    def provider_name(self) -> str:
        return Provider.BOBGO.value

    def get_client_options(self) -> ClientOptions:
        token = self.get_config_var("token")
        if not token:
            raise GatewayError("Missing bobgo token")

        return ClientOptions(
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            bearer_token=token,
        )

    def handle_request_exception(self, exc: TransportError) -> Violation:
        return Violation(str(exc))

    def status_mapping(self) -> Dict[Any, WaybillStatus]:
        return BOBGO_STATUS_MAP

    def validate_credentials(self, credentials: ProviderSettingsCredentials) -> Optional[Violation]:
        return self._run(self.validate_credentials_operation, credentials.token)

    def calculate_price(
        self, data: ShippingPriceEstimationRequestData
    ) -> Union[ShippingPriceEstimationResponseData, Violation]:
        if self.is_cash_on_delivery_attempted_but_not_allowed(data.cod_amount > 0.0):
            return Violation(COD_NOT_ALLOWED_MESSAGE)
        return self._run(self.calculate_price_operation, data)

    def create_way_bill(self, order: OrderShippingData) -> Union[CreateWayBillResponseData, Violation]:
        if self.is_cash_on_delivery_attempted_but_not_allowed(order.is_cash_on_delivery):
            return Violation(COD_NOT_ALLOWED_MESSAGE)
        return self._run(self.create_way_bill_operation, order)

    def download_way_bill(
        self, request: DownloadWayBillRequestData
    ) -> Union[DownloadWayBillResponseData, Violation]:
        return self._run(self.download_way_bill_operation, request)

    def get_shipment_status(
        self, request: ShipmentStatusRequestData
    ) -> Union[ShipmentStatusResponseData, Violation]:
        if not request.shipping_numbers:
            return ShipmentStatusResponseData([])
        return self._run(self.get_shipment_status_operation, request)

    def _run(self, operation, argument):
        """Call an operation, turning an unparseable carrier body into a Violation."""
        try:
            return operation(argument)
        except (KeyError, IndexError, TypeError, AttributeError, ValueError) as e:
            logger.error(f"BobGo {type(operation).__name__} could not parse the response: {e!r}")
            return Violation(INVALID_RESPONSE_MESSAGE)
