import secrets
from typing import Dict, Optional

from metafield_proxy.core.config import Settings
from metafield_proxy.core.exceptions import Unauthorized

PROXY_KEY_HEADER = "x-proxy-key"


def origin_allowed(origin: Optional[str], settings: Settings) -> bool:
    return bool(origin) and origin in settings.allowed_origin_list


def cors_headers(origin: Optional[str], settings: Settings) -> Dict[str, str]:
    """CORS headers for an allow-listed origin; empty for everything else."""
    if not origin_allowed(origin, settings):
        return {}
    return {
        "Access-Control-Allow-Origin": origin,
        "Vary": "Origin",
        "Access-Control-Allow-Methods": "GET, OPTIONS",
        "Access-Control-Allow-Headers": f"Content-Type, {PROXY_KEY_HEADER}",
    }


def verify_caller(settings: Settings, origin: Optional[str], provided_key: Optional[str]) -> None:
    """Reject cross-origin callers outside the allow-list and callers without the shared secret."""
    if origin and settings.allowed_origin_list and not origin_allowed(origin, settings):
        raise Unauthorized()

    required_key = settings.proxy_api_key
    if required_key:
        if not provided_key or not secrets.compare_digest(provided_key.encode(), required_key.encode()):
            raise Unauthorized()
