"""
Provider identifiers, tenant context and per-tenant provider settings.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class Provider(str, Enum):
    """Known shipping providers."""
    THE_COURIER_GUY = "thecourierguy"
    BORZO = "borzo"
    INOUT = "inout"
    ECONT = "econt"
    SPEEDY = "speedy"
    SKYNET = "skynet"
    KWIK = "kwik"
    LALAMOVE = "lalamove"
    DHL = "dhl"
    BLUE_EX = "bluex"
    CVC = "cvc"
    DELHIVERY = "delhivery"
    SONIC = "sonic"
    PARGO = "pargo"
    UPARCEL = "uparcel"
    UPS = "ups"
    FEDEX = "fedex"
    SHIPDEO = "shipdeo"
    JNT = "jnt"
    LEOPARDS = "leopards"
    BOBGO = "bobgo"


@dataclass
class Tenant:
    """Merchant account with its decrypted app configuration tree."""
    id: str
    apps: Optional[Dict[str, Any]] = None


@dataclass
class ProviderSettingsCredentials:
    """Credentials submitted for validation before they are stored."""
    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None

    def to_config(self) -> Dict[str, Any]:
        return {k: v for k, v in {
            "username": self.username,
            "password": self.password,
            "token": self.token,
        }.items() if v is not None}


@dataclass
class ProviderSettings:
    """Persisted per-tenant, per-provider settings. Read-only to gateways."""
    provider: str
    settings: Dict[str, Any] = field(default_factory=dict)
    country: Optional[str] = None
    credentials: Optional[ProviderSettingsCredentials] = None

    def merged_with(self, custom_settings: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Persisted settings with ``custom_settings`` keys taking precedence."""
        return {**(self.settings or {}), **(custom_settings or {})}
