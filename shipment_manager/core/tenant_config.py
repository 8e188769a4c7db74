"""
Provider configuration lookup inside a tenant's decrypted app config.

The tree is searched depth-first, parents before children, and the first
key equal to the provider name (case-insensitive) wins.
"""
from typing import Any, Dict, Mapping, Optional


def find_provider_config(tree: Optional[Mapping[str, Any]], provider_name: str) -> Dict[str, Any]:
    """
    Extract the sub-configuration that belongs to ``provider_name``.

    Args:
        tree: Decrypted tenant configuration, any depth
        provider_name: Provider key to look for

    Returns:
        Copy of the matching mapping, {} if none matches
    """
    if not tree:
        return {}
    found = _search(tree, provider_name.lower())
    return dict(found) if found is not None else {}


def _search(node: Mapping[str, Any], needle: str) -> Optional[Mapping[str, Any]]:
    for key, value in node.items():
        # Scalar leaves sharing the provider's name are not configs
        if str(key).lower() == needle and isinstance(value, Mapping):
            return value
        if isinstance(value, Mapping):
            found = _search(value, needle)
            if found is not None:
                return found
    return None
