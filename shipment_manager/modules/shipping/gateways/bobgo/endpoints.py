"""
BobGo API endpoints, production or sandbox.
"""

PRODUCTION_DOMAIN = "api.bobgo.co.za"
SANDBOX_DOMAIN = "api.sandbox.bobgo.co.za"

METHOD_RATES = "rates"
METHOD_SHIPMENTS = "shipments"
METHOD_WAYBILL = "shipments/waybill"
METHOD_WEBHOOKS = "webhooks"
METHOD_TRACKING = "tracking"


class BobGoApiEndpointGenerator:
    def get_rates_url(self, is_production: bool) -> str:
        return self._get_url(is_production, METHOD_RATES)

    def get_shipments_url(self, is_production: bool) -> str:
        return self._get_url(is_production, METHOD_SHIPMENTS)

    def get_waybill_url(self, is_production: bool) -> str:
        return self._get_url(is_production, METHOD_WAYBILL)

    def get_webhooks_url(self, is_production: bool) -> str:
        return self._get_url(is_production, METHOD_WEBHOOKS)

    def get_tracking_url(self, is_production: bool) -> str:
        return self._get_url(is_production, METHOD_TRACKING)

    def _get_url(self, is_production: bool, method: str) -> str:
        domain = PRODUCTION_DOMAIN if is_production else SANDBOX_DOMAIN
        return f"https://{domain}/v2/{method}"
