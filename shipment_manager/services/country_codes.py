"""
ISO 3166 country code conversion.
"""
import pycountry


def to_alpha2(code: str) -> str:
    """
    Convert an alpha-3 (or pass through an alpha-2) code to alpha-2.

    Raises:
        ValueError: Unknown country code
    """
    code = (code or "").strip().upper()
    if len(code) == 2:
        return code
    country = pycountry.countries.get(alpha_3=code)
    if country is None:
        raise ValueError(f"Unknown country code: {code}")
    return country.alpha_2


def to_alpha3(code: str) -> str:
    """Convert an alpha-2 (or pass through an alpha-3) code to alpha-3."""
    code = (code or "").strip().upper()
    if len(code) == 3:
        return code
    country = pycountry.countries.get(alpha_2=code)
    if country is None:
        raise ValueError(f"Unknown country code: {code}")
    return country.alpha_3
