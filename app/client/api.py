"""
HTTP access to the portal API.

Routes answer in three shapes: a bare payload, a ``{success, data}``
envelope, or an error envelope (``{success: false, error}`` or
``{ok: false, error}``). ``decode_envelope`` folds all of them into a single
``Ok | Err`` result before anything else looks at the body.
"""

from dataclasses import dataclass
from typing import Any, Dict, Generic, Mapping, Optional, TypeVar, Union
import logging

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

@dataclass(frozen=True)
class Err:
    message: str
    status: Optional[int] = None
    code: Optional[str] = None
    details: Any = None

Result = Union[Ok, Err]

class ApiError(Exception):
    def __init__(self, message: str, status: Optional[int] = None, code: Optional[str] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.details = details

    @classmethod
    def from_err(cls, err: Err) -> "ApiError":
        return cls(err.message, status=err.status, code=err.code, details=err.details)

def _error_fields(body: Any):
    if not isinstance(body, dict):
        return None, None, None
    error = body.get("error")
    if isinstance(error, dict):
        return error.get("message"), error.get("code"), error.get("details")
    if isinstance(error, str):
        return error, None, body.get("details")
    if isinstance(body.get("detail"), str):
        return body["detail"], None, None
    return None, None, None

def decode_envelope(status: int, body: Any) -> Result:
    ok_status = 200 <= status < 300

    if isinstance(body, dict):
        failed = body.get("success") is False or body.get("ok") is False
        if failed or not ok_status:
            message, code, details = _error_fields(body)
            return Err(message or f"Request failed with status {status}", status=status, code=code, details=details)
        if body.get("success") is True:
            return Ok(body.get("data"))
        return Ok(body)

    if not ok_status:
        return Err(f"Request failed with status {status}", status=status)
    return Ok(body)

def unwrap(result: Result) -> Any:
    if isinstance(result, Err):
        raise ApiError.from_err(result)
    return result.value

def _clean_params(params: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    return {key: str(value) for key, value in (params or {}).items() if value is not None and value != ""}

class ApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url or settings.PORTAL_API_BASE_URL
        self.transport = transport
        self.timeout = timeout

    async def request(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Result:
        try:
            async with httpx.AsyncClient(base_url=self.base_url, transport=self.transport, timeout=self.timeout) as client:
                response = await client.get(path, params=_clean_params(params), headers={"Cache-Control": "no-store"})
        except httpx.HTTPError as e:
            logger.warning(f"Request to {path} failed: {e}")
            return Err(str(e) or "Network error", code="NETWORK_ERROR")

        try:
            body = response.json()
        except ValueError:
            body = None
        return decode_envelope(response.status_code, body)

    async def get_json(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Decoded payload of a GET, raising ApiError for any failure shape."""
        return unwrap(await self.request(path, params))

async def fetch_api(path: str, params: Optional[Mapping[str, Any]] = None, client: Optional[ApiClient] = None) -> Any:
    return await (client or ApiClient()).get_json(path, params)
