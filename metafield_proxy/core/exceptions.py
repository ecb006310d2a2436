from typing import Any, Dict, Optional


class ProxyError(Exception):
    """Error that is rendered to the caller as ``{error, details?, hint?}``."""

    status_code = 500

    def __init__(
        self,
        error: str,
        status_code: Optional[int] = None,
        details: Any = None,
        hint: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(error)
        self.error = error
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        self.hint = hint
        self.headers = headers

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        if self.hint:
            body["hint"] = self.hint
        return body


class BadRequest(ProxyError):
    status_code = 400


class Unauthorized(ProxyError):
    status_code = 401

    def __init__(self, error: str = "Unauthorized"):
        super().__init__(error)


class ConfigurationError(ProxyError):
    status_code = 500

    def __init__(self, details: Dict[str, bool]):
        super().__init__("Server env not set", details=details)


class UpstreamError(ProxyError):
    """Non-2xx answer from BigCommerce; the upstream status is passed through."""

    def __init__(self, error: str, status_code: int, body: str, hint: Optional[str] = None):
        super().__init__(error, status_code=status_code, details=body, hint=hint)


class InvalidUpstreamPayload(ProxyError):
    status_code = 502
