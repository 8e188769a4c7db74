"""
Econt transport failure translation.
"""
from shipment_manager.core.http_client import DecodingError, HTTPStatusError, TransportError
from shipment_manager.models.error import Violation

INVALID_REQUEST_MESSAGE = "Gateway invalid request"
UNAVAILABLE_MESSAGE = "Gateway is not available"
CONNECTION_ERROR_MESSAGE = "Gateway connection error"
INVALID_RESPONSE_MESSAGE = "Gateway invalid response"


class EcontRequestErrorHandler:
    """
    Econt rejects bad input with 4xx and an error tree:
    ``{"type": ..., "message": ..., "innerErrors": [{"message": ...}]}``.
    Inner messages are the field level ones and are appended when present.
    """

    def handle(self, exc: TransportError) -> Violation:
        if isinstance(exc, HTTPStatusError):
            if not exc.is_client_error:
                return Violation(UNAVAILABLE_MESSAGE)
            details = self._inner_messages(exc.response.json(strict=False))
            if details:
                return Violation(f"{INVALID_REQUEST_MESSAGE}: {'; '.join(details)}")
            return Violation(INVALID_REQUEST_MESSAGE)
        if isinstance(exc, DecodingError):
            return Violation(INVALID_RESPONSE_MESSAGE)
        return Violation(CONNECTION_ERROR_MESSAGE)

    def _inner_messages(self, body) -> list:
        if not isinstance(body, dict):
            return []
        messages = []
        for error in body.get("innerErrors") or []:
            if isinstance(error, dict) and error.get("message"):
                messages.append(str(error["message"]))
        return messages
