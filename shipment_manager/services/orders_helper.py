"""
Order helpers shared by carriers.
"""
import hashlib

SHIPPING_NUMBER_PREFIX = "10"
SHIPPING_NUMBER_LENGTH = 13


class OrdersHelper:
    def generate_shipping_number_from_order_id(self, order_id: str) -> str:
        """
        Derive a carrier shipping number from an order id.

        Deterministic: the same order id always yields the same 13 digit
        number, so bulk results can be matched back to their orders.
        """
        digest = int(hashlib.sha256(str(order_id).encode("utf-8")).hexdigest(), 16)
        body_length = SHIPPING_NUMBER_LENGTH - len(SHIPPING_NUMBER_PREFIX)
        return SHIPPING_NUMBER_PREFIX + str(digest % (10 ** body_length)).zfill(body_length)
