"""
Waybill payload modifiers applied before an InOut createAWB call.

Each modifier takes the payload dict and edits ``recipient`` in place.
"""
import re

CITY_PREFIXES = re.compile(r"^\s*(гр\.|гр\s|град\s|с\.|село\s)\s*", re.IGNORECASE)
BG_PHONE_PREFIX = "+359"


class InOutCityWayBillDataModifier:
    """Drop settlement prefixes ("гр.", "с.") InOut does not recognise."""

    def __call__(self, data: dict) -> None:
        recipient = data["recipient"]
        city = recipient.get("cityName") or ""
        recipient["cityName"] = CITY_PREFIXES.sub("", city).strip()


class InOutPhoneWayBillDataModifier:
    """Normalize the recipient phone to an international number."""

    def __call__(self, data: dict) -> None:
        recipient = data["recipient"]
        phone = recipient.get("phoneNumber") or ""
        digits = re.sub(r"[^\d+]", "", phone)

        if digits.startswith("00"):
            digits = "+" + digits[2:]
        elif recipient.get("countryIsoCode") == "BG" and digits.startswith("0"):
            digits = BG_PHONE_PREFIX + digits[1:]

        recipient["phoneNumber"] = digits


DEFAULT_WAY_BILL_DATA_MODIFIERS = (
    InOutCityWayBillDataModifier(),
    InOutPhoneWayBillDataModifier(),
)
