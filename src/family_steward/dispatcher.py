"""Route decoded requests to capability handlers and build responses."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from mcp.types import (
    CallToolResult,
    Implementation,
    InitializeResult,
    ListToolsResult,
    PromptsCapability,
    ResourcesCapability,
    ServerCapabilities,
    TextContent,
    ToolsCapability,
)
from pydantic import BaseModel

from family_steward import environment, prompts, resources
from family_steward.audit import audit_log
from family_steward.protocol import (
    PROTOCOL_VERSION,
    SERVER_ERROR,
    SERVER_NAME,
    SERVER_VERSION,
    InvalidRequest,
    MethodNotFound,
    Request,
    RPCError,
    error_response,
    success_response,
)
from family_steward.tools import ToolContext, ToolRegistry, registry

log = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any]], Awaitable[BaseModel]]


class Dispatcher:
    """Answers every request with exactly one response envelope.

    There is no session state: ``initialize`` is informational and any
    method may be called at any time.
    """

    def __init__(
        self,
        context: ToolContext,
        tools: ToolRegistry = registry,
        audit_path: Path | None = None,
    ) -> None:
        self.context = context
        self.tools = tools
        self.audit_path = audit_path or environment.AUDIT_PATH
        self._methods: dict[str, Handler] = {
            "initialize": self._initialize,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "resources/list": self._list_resources,
            "resources/read": self._read_resource,
            "prompts/list": self._list_prompts,
            "prompts/get": self._get_prompt,
        }

    def is_deferred(self, request: Request) -> bool:
        """Whether answering this request may take long enough to run it aside."""
        return request.method == "tools/call" and self.tools.is_deferred(
            request.params.get("name")
        )

    async def handle(self, request: Request):
        try:
            result = await self._route(request)
            payload = result.model_dump(by_alias=True, exclude_none=True, mode="json")
        except RPCError as e:
            log.info("%s failed: %s", request.method or "request", e.message)
            return error_response(request.id, e.code, e.message)
        except Exception as e:
            log.exception("Error handling %s", request.method)
            return error_response(request.id, SERVER_ERROR, str(e) or type(e).__name__)
        return success_response(request.id, payload)

    async def _route(self, request: Request) -> BaseModel:
        if not request.method:
            raise InvalidRequest("Request is missing a method")
        handler = self._methods.get(request.method)
        if handler is None:
            raise MethodNotFound(f"Method not found: {request.method}")
        log.debug("Handling %s (id=%r)", request.method, request.id)
        return await handler(request.params)

    async def _initialize(self, params: dict[str, Any]) -> InitializeResult:
        return InitializeResult(
            protocolVersion=PROTOCOL_VERSION,
            capabilities=ServerCapabilities(
                tools=ToolsCapability(),
                resources=ResourcesCapability(),
                prompts=PromptsCapability(),
            ),
            serverInfo=Implementation(name=SERVER_NAME, version=SERVER_VERSION),
        )

    async def _list_tools(self, params: dict[str, Any]) -> ListToolsResult:
        return ListToolsResult(tools=[td.to_mcp() for td in self.tools.definitions()])

    async def _call_tool(self, params: dict[str, Any]) -> CallToolResult:
        name = params.get("name")
        arguments = params.get("arguments")
        if not isinstance(arguments, dict):
            arguments = {}
        if not isinstance(name, str):
            raise MethodNotFound(f"Unknown tool: {name}")

        try:
            text = await self.tools.execute(name, arguments, self.context)
        except Exception as e:
            audit_log(self.audit_path, name, arguments, str(e), is_error=True)
            raise
        audit_log(self.audit_path, name, arguments, text, is_error=False)
        return CallToolResult(content=[TextContent(type="text", text=text)])

    async def _list_resources(self, params: dict[str, Any]):
        return resources.list_resources(self.context.store)

    async def _read_resource(self, params: dict[str, Any]):
        return resources.read_resource(str(params.get("uri") or ""))

    async def _list_prompts(self, params: dict[str, Any]):
        return prompts.list_prompts()

    async def _get_prompt(self, params: dict[str, Any]):
        return prompts.get_prompt(str(params.get("name") or ""))
