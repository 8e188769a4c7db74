"""
Gateway operation proxy.

Carriers whose integration is split into one object per capability hand
each operation this narrow interface instead of the gateway itself. The
operation can issue requests and read config, settings and sender
addresses, and unit tests can replace the whole thing with a mock.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

from shipment_manager.core.http_client import HttpTransport
from shipment_manager.models.error import Violation
from shipment_manager.models.sender_address import SenderAddress


class GatewayOperationProxy(ABC):
    """What an operation object may use from its owning gateway."""

    @abstractmethod
    def issue_request(
        self,
        method: str,
        url: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Union[Any, Violation]:
        pass

    @abstractmethod
    def get_config_var(self, name: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def get_provider_settings(self) -> Any:
        """Typed carrier settings."""
        pass

    @abstractmethod
    def get_transport(self) -> HttpTransport:
        """Bare transport, for calls made outside the carrier's client options."""
        pass

    @abstractmethod
    def resolve_sender_address(self, address_id: Optional[str] = None) -> Optional[SenderAddress]:
        pass


class ShippingGatewayProxy(GatewayOperationProxy):
    """Proxy bound to a concrete gateway."""

    def __init__(self, gateway):
        self._gateway = gateway

    def issue_request(self, method, url, json=None, params=None):
        return self._gateway.request(method, url, json=json, params=params)

    def get_config_var(self, name, default=None):
        return self._gateway.get_config_var(name, default)

    def get_provider_settings(self):
        return self._gateway.settings

    def get_transport(self):
        return self._gateway.transport

    def resolve_sender_address(self, address_id=None):
        return self._gateway.get_sender_address(address_id)
