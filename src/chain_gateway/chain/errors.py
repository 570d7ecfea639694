"""Two-kind error taxonomy shared by the chain adapters."""

from __future__ import annotations

from enum import Enum
from typing import Any

import requests

CANNOT_CONNECT = "Cannot connect to RPC node"


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    BAD_GATEWAY = "bad_gateway"


class RPCError(Exception):
    """Raised when a node lookup fails.

    `kind` tells the caller whether the requested object does not exist
    (NOT_FOUND) or the node could not give a usable answer (BAD_GATEWAY).
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.BAD_GATEWAY,
        code: int | None = None,
        data: Any = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.code = code
        self.data = data

    @property
    def is_not_found(self) -> bool:
        return self.kind is ErrorKind.NOT_FOUND


def not_found(message: str = "Resource not found", **kwargs: Any) -> RPCError:
    return RPCError(message, ErrorKind.NOT_FOUND, **kwargs)


def bad_gateway(message: str, **kwargs: Any) -> RPCError:
    return RPCError(message, ErrorKind.BAD_GATEWAY, **kwargs)


def _is_connect_failure(exc: BaseException) -> bool:
    # Timeouts while connecting are reported with their own message.
    return not isinstance(exc, requests.Timeout)


def _error_body_message(response: requests.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    msg = body.get("error") or body.get("message")
    if isinstance(msg, dict):
        msg = msg.get("message")
    return str(msg) if msg else None


def classify_failure(exc: BaseException) -> RPCError:
    """Map any failure raised while talking to a node onto an RPCError.

    Already classified errors pass through unchanged.
    """
    if isinstance(exc, RPCError):
        return exc

    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        if exc.response.status_code == 404:
            return not_found()
        body_msg = _error_body_message(exc.response)
        if body_msg:
            return bad_gateway(
                f"RPC Error: {body_msg}", code=exc.response.status_code
            )
        return bad_gateway(
            f"RPC request failed: {exc}", code=exc.response.status_code
        )

    connect_errors = (requests.ConnectionError, ConnectionError)
    if isinstance(exc, connect_errors) and _is_connect_failure(exc):
        return bad_gateway(CANNOT_CONNECT, data=str(exc))

    if isinstance(exc, ValueError):
        return bad_gateway(f"RPC returned invalid JSON: {exc}")

    return bad_gateway(f"RPC request failed: {exc}")
