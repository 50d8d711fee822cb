"""Errors raised by the hosting and identity integrations."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx


class HostingError(RuntimeError):
    """Base class for every failure reported by the integrations."""


class RequestFailed(HostingError):
    """Raised when the vendor API answers with an unexpected status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        path: Optional[str] = None,
        vendor_message: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.path = path
        self.vendor_message = vendor_message

    @classmethod
    def from_response(cls, response: httpx.Response, path: str) -> "RequestFailed":
        vendor_message = extract_vendor_message(response)
        return cls(
            f"Request to {path} failed with status {response.status_code}: "
            f"{vendor_message}",
            status_code=response.status_code,
            path=path,
            vendor_message=vendor_message,
        )


class ListNotFound(HostingError):
    """Raised when the first page of a list endpoint returns 404."""

    def __init__(self, kind: str, path: Optional[str] = None) -> None:
        super().__init__(f"could not find {kind}")
        self.kind = kind
        self.path = path


class OperationFailed(RequestFailed):
    """Raised when a polled operation finishes with an error payload."""

    def __init__(self, operation_name: str, vendor_message: str) -> None:
        super().__init__(
            f"Operation {operation_name} failed: {vendor_message}",
            path=operation_name,
            vendor_message=vendor_message,
        )
        self.operation_name = operation_name


class OperationTimeout(HostingError, TimeoutError):
    """Raised when polling gives up before an operation reports ``done``."""

    def __init__(self, operation_name: str, attempts: int) -> None:
        super().__init__(
            f"Operation {operation_name} still running after {attempts} poll attempts"
        )
        self.operation_name = operation_name
        self.attempts = attempts


def decode_payload(response: httpx.Response, path: str) -> Dict[str, Any]:
    """Return the JSON object of a successful response.

    Bodies that are empty, not JSON, or not a JSON object raise
    :class:`RequestFailed`.
    """

    try:
        payload = response.json()
    except ValueError as exc:
        raise RequestFailed(
            f"Unexpected response from {path}: body is not JSON",
            status_code=response.status_code,
            path=path,
        ) from exc
    if not isinstance(payload, dict):
        raise RequestFailed(
            f"Unexpected response from {path}: expected a JSON object, "
            f"got {type(payload).__name__}",
            status_code=response.status_code,
            path=path,
        )
    return payload


def extract_vendor_message(response: httpx.Response) -> str:
    """Return the error text of a vendor response.

    The ``error`` key may hold a plain string or a Google-style object with a
    ``message``; anything else falls back to the raw body.
    """

    try:
        payload: Any = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, str) and error:
            return error
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])

    text = response.text.strip()
    return text or response.reason_phrase or f"HTTP {response.status_code}"


__all__ = [
    "HostingError",
    "ListNotFound",
    "OperationFailed",
    "OperationTimeout",
    "RequestFailed",
    "decode_payload",
    "extract_vendor_message",
]
