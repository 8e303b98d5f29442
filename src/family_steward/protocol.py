"""JSON-RPC request/response envelopes and the error taxonomy."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from mcp.types import ErrorData, JSONRPCError, JSONRPCMessage, JSONRPCResponse

log = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "family-steward"
SERVER_VERSION = "1.0.0"

INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
SERVER_ERROR = -32000

MAX_ERROR_MESSAGE = 200

RequestId = str | int


class RPCError(Exception):
    """An error that should be reported to the host as a JSON-RPC error."""

    code = SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequest(RPCError):
    code = INVALID_REQUEST


class MethodNotFound(RPCError):
    code = METHOD_NOT_FOUND


class ServerError(RPCError):
    code = SERVER_ERROR


class ResourceNotFound(ServerError):
    def __init__(self) -> None:
        super().__init__("Resource not found")


@dataclass(frozen=True)
class Request:
    id: RequestId
    method: str
    params: dict[str, Any] = field(default_factory=dict)


def parse_request(message: dict[str, Any]) -> Request | None:
    """Build a Request from a decoded message.

    Returns None when there is nobody to answer: notifications (no id) and
    ids that cannot be echoed back.
    """
    if "id" not in message:
        log.debug("Ignoring notification %r", message.get("method"))
        return None
    request_id = message["id"]
    if (
        isinstance(request_id, bool)
        or not isinstance(request_id, str | int)
        or (isinstance(request_id, str) and not is_encodable(request_id))
    ):
        log.warning("Dropping message with unusable id %r", request_id)
        return None

    method = message.get("method")
    params = message.get("params")
    return Request(
        id=request_id,
        method=method if isinstance(method, str) else "",
        params=params if isinstance(params, dict) else {},
    )


def is_encodable(text: str) -> bool:
    """Whether text survives UTF-8 encoding (no lone surrogates)."""
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def printable(text: str) -> str:
    """Text safe to put on the wire, with lone surrogates escaped."""
    return text.encode("utf-8", "backslashreplace").decode("utf-8")


def bounded(message: str, limit: int = MAX_ERROR_MESSAGE) -> str:
    if len(message) <= limit:
        return message
    return message[: limit - 3] + "..."


def success_response(request_id: RequestId, result: dict[str, Any]) -> JSONRPCMessage:
    return JSONRPCMessage(JSONRPCResponse(jsonrpc="2.0", id=request_id, result=result))


def error_response(request_id: RequestId, code: int, message: str) -> JSONRPCMessage:
    return JSONRPCMessage(
        JSONRPCError(
            jsonrpc="2.0",
            id=request_id,
            error=ErrorData(code=code, message=bounded(printable(message))),
        )
    )


def serialize(message: JSONRPCMessage) -> str:
    return message.model_dump_json(by_alias=True, exclude_none=True)
