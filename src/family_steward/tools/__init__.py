"""Tool registry and the tools exposed to the host."""

from __future__ import annotations

import inspect
import logging
import types
from collections.abc import Callable
from dataclasses import dataclass
from types import FunctionType
from typing import Any, Literal, TypeVar, get_args, get_origin, get_type_hints, is_typeddict

from mcp.types import Tool

from family_steward.bridge import AnalysisBridge
from family_steward.protocol import MethodNotFound
from family_steward.store import SnapshotStore

log = logging.getLogger(__name__)

F = TypeVar("F", bound=FunctionType)


@dataclass
class ToolDefinition:
    """A tool available to the host."""

    name: str
    description: str
    input_schema: dict[str, Any]
    deferred: bool = False

    def to_mcp(self) -> Tool:
        return Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_schema,
        )


@dataclass
class ToolContext:
    store: SnapshotStore
    bridge: AnalysisBridge


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: dict[str, Callable] = {}
        self._schemas: dict[str, ToolDefinition] = {}

    def tool(self, fn: F | None = None, *, deferred: bool = False) -> F:
        """Decorator that registers a tool and derives its schema.

        Supports both ``@registry.tool`` and ``@registry.tool(deferred=True)``.
        Deferred tools may take a long time; the server answers them
        without holding up the rest of the input stream.
        """

        def _register(fn: F) -> F:
            name = fn.__name__
            self._tools[name] = fn
            self._schemas[name] = ToolDefinition(
                name=name,
                description=_summary(fn.__doc__ or ""),
                input_schema=_schema_from_hints(fn),
                deferred=deferred,
            )
            return fn

        if fn is not None:
            return _register(fn)
        return _register  # type: ignore[return-value]

    def definitions(self) -> list[ToolDefinition]:
        """Return tool definitions."""
        return list(self._schemas.values())

    def is_deferred(self, name: Any) -> bool:
        defn = self._schemas.get(name) if isinstance(name, str) else None
        return defn.deferred if defn else False

    async def execute(self, name: str, args: dict[str, Any], ctx: ToolContext) -> str:
        """Execute a tool by name.  Errors raised by the tool propagate."""
        fn = self._tools.get(name)
        if not fn:
            raise MethodNotFound(f"Unknown tool: {name}")
        params = inspect.signature(fn).parameters
        accepted = {k: v for k, v in args.items() if k in params and k != "ctx"}
        if ignored := sorted(set(args) - set(accepted)):
            log.debug("Ignoring unknown arguments to %s: %s", name, ignored)
        return await fn(ctx, **accepted)


TYPE_MAP = {
    str: "string",
    int: "integer",
    bool: "boolean",
    float: "number",
    dict: "object",
}


def _schema_from_hints(fn: Callable) -> dict:
    """Derive a JSON Schema input_schema from a tool function's type hints and docstring."""
    hints = get_type_hints(fn)
    sig = inspect.signature(fn)
    param_descriptions = _parse_param_docs(fn.__doc__ or "")

    properties = {}
    required = []

    for param_name, param in sig.parameters.items():
        if param_name == "ctx":
            continue
        prop = _schema_for(hints.get(param_name, str))

        if param_name in param_descriptions:
            prop["description"] = param_descriptions[param_name]

        if param.default is inspect.Parameter.empty:
            required.append(param_name)
        else:
            prop["default"] = param.default

        properties[param_name] = prop

    return {"type": "object", "properties": properties, "required": required}


def _schema_for(hint: Any) -> dict[str, Any]:
    # Unwrap Optional / X | None to the inner type
    if get_origin(hint) is types.UnionType:
        hint = next(a for a in get_args(hint) if a is not type(None))

    origin = get_origin(hint)
    if origin is Literal:
        values = list(get_args(hint))
        return {"type": TYPE_MAP.get(type(values[0]), "string"), "enum": values}
    if origin is list:
        item_type = get_args(hint)[0] if get_args(hint) else str
        return {"type": "array", "items": _schema_for(item_type)}
    if origin is dict:
        args = get_args(hint)
        value_type = args[1] if len(args) > 1 else str
        return {"type": "object", "additionalProperties": _schema_for(value_type)}
    if is_typeddict(hint):
        return {
            "type": "object",
            "properties": {
                key: _schema_for(value) for key, value in get_type_hints(hint).items()
            },
        }
    return {"type": TYPE_MAP.get(hint, "string")}


def _summary(docstring: str) -> str:
    """The docstring's first paragraph, which is what hosts show as the description."""
    return inspect.cleandoc(docstring).split("\n\n", 1)[0].replace("\n", " ")


def _parse_param_docs(docstring: str) -> dict[str, str]:
    """Parse 'param_name: description' lines from a docstring."""
    descriptions = {}
    for line in docstring.split("\n")[1:]:
        line = line.strip()
        if ":" in line and not line.startswith("#"):
            name, _, desc = line.partition(":")
            name = name.strip()
            desc = desc.strip()
            if name.isidentifier() and desc:
                descriptions[name] = desc
        elif line.startswith("---"):
            break
    return descriptions


registry = ToolRegistry()


import family_steward.tools.family as _family  # noqa: E402, F401
import family_steward.tools.analysis as _analysis  # noqa: E402, F401
