"""
Shipment Manager Exception Hierarchy

Only integration-time misconfiguration is raised. Anything a caller can act
on (bad input, remote failure, business rule) is returned as a Violation.

Exception Hierarchy:
    ShipmentManagerError
    ├── ConfigurationError
    │   ├── TenantIdError
    │   ├── TenantProvidersError
    │   └── InvalidProviderError
    └── GatewayError
"""
from typing import Optional, Dict, Any


class ShipmentManagerError(Exception):
    """
    Base exception for all Shipment Manager errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for programmatic handling
        details: Additional context for debugging/audit
        severity: P0-P3 severity level
    """

    default_code: str = "SHIPMENT_MANAGER_ERROR"
    default_severity: str = "P2"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[str] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        self.severity = severity or self.default_severity
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "severity": self.severity,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


# =============================================================================
# CONFIGURATION ERRORS (raised, caller built an invalid request)
# =============================================================================

class ConfigurationError(ShipmentManagerError):
    """Integration-time misconfiguration."""
    default_code = "CONFIGURATION_ERROR"
    default_severity = "P1"


class TenantIdError(ConfigurationError):
    """No tenant context was supplied to a gateway."""
    default_code = "TENANT_NOT_FOUND"

    def __init__(self, message: str = "Tenant is not found", **kwargs):
        super().__init__(message, **kwargs)


class TenantProvidersError(ConfigurationError):
    """Mandatory provider settings are missing or invalid."""
    default_code = "TENANT_PROVIDER_SETTINGS_INVALID"


class InvalidProviderError(ConfigurationError):
    """Provider identifier is unknown or has no gateway."""
    default_code = "INVALID_PROVIDER"

    def __init__(self, message: str = "Invalid provider name.", provider: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        details.update({"provider": provider})
        super().__init__(message, details=details, **kwargs)


# =============================================================================
# GATEWAY ERRORS
# =============================================================================

class GatewayError(ShipmentManagerError):
    """
    Carrier gateway could not be used.

    Raised by ``get_client_options`` on misconfiguration and by lazy
    sequences whose underlying fetch failed. ``violation`` holds the
    converted failure when there is one.
    """
    default_code = "GATEWAY_ERROR"
    default_severity = "P1"

    def __init__(self, message: str, violation=None, **kwargs):
        self.violation = violation
        super().__init__(message, **kwargs)
