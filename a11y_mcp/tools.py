"""Tool descriptors and dispatch for the MCP server.

Two kinds of failure leave this module:

 - protocol faults (unknown tool, missing ``url``) are raised as
   :class:`McpError` so the session answers with a JSON-RPC error;
 - anything that goes wrong while auditing is returned as a normal
   ``CallToolResult`` with ``isError`` set and a readable message.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Type, TypeVar

from mcp import types
from mcp.shared.exceptions import McpError
from pydantic import BaseModel, ValidationError

from . import browser
from .config import Settings
from .formatting import format_report, format_summary, to_json
from .schema import AuditRequest, SummaryRequest

log = logging.getLogger(__name__)

AUDIT_WEBPAGE = "audit_webpage"
GET_SUMMARY = "get_summary"

TOOLS: List[Dict[str, Any]] = [
    {
        "name": AUDIT_WEBPAGE,
        "description": "Perform an accessibility audit on a webpage",
        "inputSchema": {
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": "URL of the webpage to audit",
                },
                "includeHtml": {
                    "type": "boolean",
                    "description": "Whether to include HTML snippets in the results",
                    "default": False,
                },
                "tags": {
                    "type": "array",
                    "items": {
                        "type": "string",
                    },
                    "description": "Specific accessibility tags to check (e.g., wcag2a, wcag2aa, wcag21a, best-practice)",
                },
            },
            "required": ["url"],
        },
    },
    {
        "name": GET_SUMMARY,
        "description": "Get a summary of accessibility issues for a webpage",
        "inputSchema": {
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": "URL of the webpage to audit",
                },
            },
            "required": ["url"],
        },
    },
]

RequestT = TypeVar("RequestT", bound=BaseModel)


def list_tools() -> List[types.Tool]:
    return [types.Tool(**spec) for spec in TOOLS]


def text_result(text: str, is_error: bool = False) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        isError=is_error,
    )


def parse_arguments(model: Type[RequestT], arguments: Optional[Mapping[str, Any]]) -> RequestT:
    """Validate tool arguments, raising an INVALID_PARAMS fault on failure."""
    arguments = arguments or {}
    if not arguments.get("url"):
        raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message="URL is required"))
    try:
        return model.model_validate(arguments)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=f"Invalid arguments: {problems}")) from e


async def audit_webpage(arguments: Optional[Mapping[str, Any]], settings: Optional[Settings] = None) -> types.CallToolResult:
    request = parse_arguments(AuditRequest, arguments)
    try:
        results = await browser.run_axe(request.url, tags=request.tags, settings=settings)
        report = format_report(results, request.url, include_html=request.includeHtml)
    except Exception as e:
        log.warning("audit_webpage failed for %s: %s", request.url, e)
        return text_result(f"Error auditing webpage: {e}", is_error=True)
    return text_result(to_json(report))


async def get_summary(arguments: Optional[Mapping[str, Any]], settings: Optional[Settings] = None) -> types.CallToolResult:
    request = parse_arguments(SummaryRequest, arguments)
    try:
        results = await browser.run_axe(request.url, settings=settings)
        summary = format_summary(results, request.url)
    except Exception as e:
        log.warning("get_summary failed for %s: %s", request.url, e)
        return text_result(f"Error getting summary: {e}", is_error=True)
    return text_result(to_json(summary))


HANDLERS: Dict[str, Callable[..., Awaitable[types.CallToolResult]]] = {
    AUDIT_WEBPAGE: audit_webpage,
    GET_SUMMARY: get_summary,
}


async def call_tool(
    name: str,
    arguments: Optional[Mapping[str, Any]] = None,
    settings: Optional[Settings] = None,
) -> types.CallToolResult:
    handler = HANDLERS.get(name)
    if handler is None:
        raise McpError(types.ErrorData(code=types.METHOD_NOT_FOUND, message=f"Unknown tool: {name}"))
    log.info("Tool call: %s", name)
    return await handler(arguments, settings=settings)


__all__ = [
    "AUDIT_WEBPAGE",
    "GET_SUMMARY",
    "TOOLS",
    "list_tools",
    "call_tool",
    "audit_webpage",
    "get_summary",
    "parse_arguments",
    "text_result",
]
