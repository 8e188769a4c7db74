"""
Gateway Registry and Factory

- GatewayFactory resolves a provider identifier to a configured gateway
- Gateways register themselves with @register_gateway
- Carrier collaborators (office caches, sender addresses, translator) are
  handed over explicitly through GatewayDependencies
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Type
import logging

from shipment_manager.core.exceptions import InvalidProviderError
from shipment_manager.core.http_client import HttpTransport
from shipment_manager.models.provider import Provider, ProviderSettings, Tenant
from shipment_manager.services.office_cache import ShippingOfficeCache, get_office_cache
from shipment_manager.services.orders_helper import OrdersHelper
from shipment_manager.services.sender_address_repository import SenderAddressRepository

logger = logging.getLogger(__name__)

# Registry of gateway implementations
_GATEWAY_REGISTRY: Dict[Provider, Type] = {}


def register_gateway(provider: Provider):
    """
    Decorator to register a gateway implementation.

    Usage:
        @register_gateway(Provider.ECONT)
        class EcontShippingGateway(ShippingGateway):
            ...
    """
    def decorator(cls):
        _GATEWAY_REGISTRY[provider] = cls
        logger.debug(f"Registered gateway: {provider.value} -> {cls.__name__}")
        return cls
    return decorator


@dataclass
class GatewayDependencies:
    """Collaborators a gateway may need; each carrier takes what it uses."""
    sender_addresses: Optional[SenderAddressRepository] = None
    translator: Optional[Callable[[str], str]] = None
    orders_helper: OrdersHelper = field(default_factory=OrdersHelper)
    office_caches: Dict[str, ShippingOfficeCache] = field(default_factory=dict)

    def office_cache(self, namespace: str) -> ShippingOfficeCache:
        if namespace not in self.office_caches:
            self.office_caches[namespace] = get_office_cache(namespace)
        return self.office_caches[namespace]


class GatewayFactory:
    """
    Resolves configured gateways for one tenant.

    The factory keeps no state about the gateways it returns; each call
    builds a fresh, request scoped instance.
    """

    def __init__(
        self,
        tenant: Optional[Tenant],
        transport: HttpTransport,
        dependencies: Optional[GatewayDependencies] = None,
    ):
        self.tenant = tenant
        self.transport = transport
        self.dependencies = dependencies or GatewayDependencies()

    def resolve(
        self,
        provider_id: str,
        provider_settings: ProviderSettings,
        custom_settings: Optional[Dict[str, Any]] = None,
    ):
        """
        Get a gateway configured with the tenant's provider settings.

        Args:
            provider_id: Provider identifier, e.g. "econt"
            provider_settings: Persisted settings for this provider
            custom_settings: Per-call overrides

        Returns:
            Configured ShippingGateway

        Raises:
            InvalidProviderError: Unknown provider or no gateway for it
            TenantIdError: No tenant context
            TenantProvidersError: Mandatory provider settings missing
        """
        try:
            provider = Provider(str(provider_id).lower())
        except ValueError:
            raise InvalidProviderError(provider=str(provider_id)) from None

        gateway_cls = _GATEWAY_REGISTRY.get(provider)
        if not gateway_cls:
            logger.warning(f"No gateway registered for provider: {provider.value}")
            raise InvalidProviderError(provider=provider.value)

        gateway = gateway_cls.from_dependencies(self.tenant, self.transport, self.dependencies)
        gateway.set_provider_settings(provider_settings, custom_settings)
        return gateway

    @staticmethod
    def get_registered_providers() -> List[Provider]:
        return list(_GATEWAY_REGISTRY.keys())

    @staticmethod
    def is_supported(provider_id: str) -> bool:
        try:
            return Provider(str(provider_id).lower()) in _GATEWAY_REGISTRY
        except ValueError:
            return False


# Import gateway implementations to trigger registration
from shipment_manager.modules.shipping.gateways.econt import gateway as _econt  # noqa: E402, F401
from shipment_manager.modules.shipping.gateways.inout import gateway as _inout  # noqa: E402, F401
from shipment_manager.modules.shipping.gateways.bobgo import gateway as _bobgo  # noqa: E402, F401
