"""
Test data builders and the scripted carrier transport.
"""
import json
from typing import List, Union

import httpx

from shipment_manager.core.http_client import HttpTransport
from shipment_manager.models.order import OrderProductDetail, OrderShippingData, PaymentMethod, ShippingAddress
from shipment_manager.models.shipping import ShippingPriceEstimationRequestData


class MockCarrier:
    """
    Scripted carrier API.

    Responses are served in order; an Exception instance is raised instead
    of answering. Every request is recorded.
    """

    def __init__(self, *responses: Union[httpx.Response, Exception]):
        self.responses: List[Union[httpx.Response, Exception]] = list(responses)
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def transport(self) -> HttpTransport:
        return HttpTransport(client=httpx.Client(transport=httpx.MockTransport(self.handler)))

    def json_body(self, index: int = 0):
        return json.loads(self.requests[index].content)

    @property
    def call_count(self) -> int:
        return len(self.requests)


def make_order(address: ShippingAddress, order_id: str = "order-1", **overrides) -> OrderShippingData:
    values = dict(
        order_id=order_id,
        reference=f"REF-{order_id}",
        shipping_address=address,
        payment_method=PaymentMethod.CARD.value,
        total_price=11199,
        shipping_price=200,
        currency="BGN",
        products_weight=1500,
        products_quantity=2,
        description="Two books",
        notes="Call before delivery",
        customer_email="buyer@example.com",
        order_product_details=[OrderProductDetail(name="Book", quantity=2, weight=0.75, price=54.99)],
    )
    values.update(overrides)
    return OrderShippingData(**values)


def make_estimation(address: ShippingAddress, **overrides) -> ShippingPriceEstimationRequestData:
    values = dict(
        shipping_address=address,
        weight=1000,
        currency="BGN",
        cod_amount=0.0,
        total_price=109.99,
        product_details=[OrderProductDetail(name="Book", quantity=1, weight=1.0, price=109.99)],
    )
    values.update(overrides)
    return ShippingPriceEstimationRequestData(**values)
