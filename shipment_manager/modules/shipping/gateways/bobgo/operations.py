"""
BobGo operations.

One object per capability. Operations hold only business logic (payload
assembly, response parsing) and reach the owning gateway through a
GatewayOperationProxy, so each can be tested with a mocked proxy.
"""
import logging
from typing import Optional, Union

from shipment_manager.core.http_client import TransportError
from shipment_manager.core.utils import as_dict
from shipment_manager.models.error import Violation
from shipment_manager.models.order import OrderShippingData
from shipment_manager.models.shipping import ShippingPriceEstimationRequestData, ShippingPriceEstimationResponseData
from shipment_manager.models.waybill import (
    CreateWayBillResponseData,
    DownloadWayBillRequestData,
    DownloadWayBillResponseData,
    ShipmentStatus,
    ShipmentStatusRequestData,
    ShipmentStatusResponseData,
    WaybillStatus,
)
from shipment_manager.modules.shipping.gateways.bobgo.assemblers import (
    BobGoRatesPayloadAssembler,
    BobGoShipmentsPayloadAssembler,
    BobGoWayBillPayloadAssembler,
)
from shipment_manager.modules.shipping.gateways.bobgo.endpoints import BobGoApiEndpointGenerator
from shipment_manager.modules.shipping.gateways.proxy import GatewayOperationProxy

logger = logging.getLogger(__name__)

AUTHENTICATION_ERROR_MESSAGE = "BobGo Authentication Error"
PRICE_PARSE_ERROR_MESSAGE = "Unable to parse price."
WAYBILL_URL_PARSE_ERROR_MESSAGE = "Unable to parse waybill URL."
TRACKING_REFERENCE_PARSE_ERROR_MESSAGE = "Unable to parse tracking reference."
TOKEN_MISSING_MESSAGE = "Token is null"
INVALID_RESPONSE_MESSAGE = "Gateway invalid response"


class BobGoOperation:
    def __init__(self, proxy: GatewayOperationProxy, endpoints: BobGoApiEndpointGenerator):
        self.proxy = proxy
        self.endpoints = endpoints

    @property
    def is_production(self) -> bool:
        return not self.proxy.get_config_var("testMode")


class BobGoValidateCredentials(BobGoOperation):
    def __call__(self, token: Optional[str]) -> Optional[Violation]:
        if token is None:
            return Violation(TOKEN_MISSING_MESSAGE)

        # The token is not stored yet, so the call bypasses the gateway options
        try:
            response = self.proxy.get_transport().request(
                "GET",
                self.endpoints.get_webhooks_url(self.is_production),
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                    "Authorization": f"Bearer {token}",
                },
                raise_for_status=False,
            )
        except TransportError as e:
            logger.critical(f"Gateway request error: {e}")
            return Violation(str(e))

        if response.status != 200:
            logger.error(f"{AUTHENTICATION_ERROR_MESSAGE}: status={response.status} response={response.text}")
            body = response.json(strict=False)
            message = body.get("message") if isinstance(body, dict) else None
            return Violation(f"{AUTHENTICATION_ERROR_MESSAGE}: {message or '-'}")
        return None


class BobGoCalculatePrice(BobGoOperation):
    def __init__(self, proxy, endpoints, assembler: Optional[BobGoRatesPayloadAssembler] = None):
        super().__init__(proxy, endpoints)
        self.assembler = assembler or BobGoRatesPayloadAssembler()

    def __call__(
        self, data: ShippingPriceEstimationRequestData
    ) -> Union[ShippingPriceEstimationResponseData, Violation]:
        settings = self.proxy.get_provider_settings()
        payload = self.assembler(
            data, settings, self.proxy.resolve_sender_address(settings.default_sender_address_id)
        )
        if isinstance(payload, Violation):
            return payload

        response = self.proxy.issue_request("POST", self.endpoints.get_rates_url(self.is_production), json=payload)
        if isinstance(response, Violation):
            return response

        try:
            price = float(response["provider_rate_requests"][0]["responses"][0]["rate_amount"])
        except (KeyError, IndexError, TypeError, ValueError):
            return Violation(PRICE_PARSE_ERROR_MESSAGE)

        return ShippingPriceEstimationResponseData(price)


class BobGoCreateWayBill(BobGoOperation):
    def __init__(self, proxy, endpoints, assembler: Optional[BobGoShipmentsPayloadAssembler] = None):
        super().__init__(proxy, endpoints)
        self.assembler = assembler or BobGoShipmentsPayloadAssembler()

    def __call__(self, data: OrderShippingData) -> Union[CreateWayBillResponseData, Violation]:
        settings = self.proxy.get_provider_settings()
        payload = self.assembler(
            data, settings, self.proxy.resolve_sender_address(settings.default_sender_address_id)
        )
        if isinstance(payload, Violation):
            return payload

        response = self.proxy.issue_request(
            "POST", self.endpoints.get_shipments_url(self.is_production), json=payload
        )
        if isinstance(response, Violation):
            return response

        if not isinstance(response, dict) or not response.get("tracking_reference"):
            return Violation(TRACKING_REFERENCE_PARSE_ERROR_MESSAGE)

        info = dict(response)
        info.setdefault("reference", data.reference)
        return CreateWayBillResponseData(str(response["tracking_reference"]), info)


class BobGoDownloadWayBill(BobGoOperation):
    def __init__(self, proxy, endpoints, assembler: Optional[BobGoWayBillPayloadAssembler] = None):
        super().__init__(proxy, endpoints)
        self.assembler = assembler or BobGoWayBillPayloadAssembler()

    def __call__(self, request: DownloadWayBillRequestData) -> Union[DownloadWayBillResponseData, Violation]:
        # First call returns a short lived download URL, the second fetches the PDF
        response = self.proxy.issue_request(
            "GET",
            self.endpoints.get_waybill_url(self.is_production),
            params=self.assembler(request.shipping_number),
        )
        if isinstance(response, Violation):
            return response

        download_url = response.get("download_url") if isinstance(response, dict) else None
        if not download_url:
            return Violation(WAYBILL_URL_PARSE_ERROR_MESSAGE)

        try:
            content = self.proxy.get_transport().request("GET", download_url, raise_for_status=False).raw_body
        except TransportError as e:
            logger.critical(f"Gateway request error: {e}")
            return Violation(str(e))

        return DownloadWayBillResponseData("pdf", content)


class BobGoGetShipmentStatus(BobGoOperation):
    def __call__(self, request: ShipmentStatusRequestData) -> Union[ShipmentStatusResponseData, Violation]:
        shipping_number = request.shipping_numbers[0]
        response = self.proxy.issue_request(
            "GET",
            self.endpoints.get_tracking_url(self.is_production),
            params={"tracking_reference": shipping_number},
        )
        if isinstance(response, Violation):
            return response

        if not isinstance(response, list):
            logger.error(f"BobGo tracking response is not a list: {response!r}")
            return Violation(INVALID_RESPONSE_MESSAGE)

        statuses = []
        for tracking in response:
            if not isinstance(tracking, dict):
                continue
            events = as_dict(tracking.get("shipment_movement_events"))
            status = WaybillStatus.PENDING
            is_paid = False
            # Delivery implies payment for BobGo
            if events.get("delivered_time"):
                status = WaybillStatus.DELIVERED
                is_paid = True
            elif events.get("collected_time"):
                status = WaybillStatus.SHIPPED
            elif tracking.get("status") == "cancelled":
                status = WaybillStatus.CANCELED

            statuses.append(ShipmentStatus(shipping_number, is_paid, status))

        return ShipmentStatusResponseData(statuses)
