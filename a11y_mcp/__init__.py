"""a11y_mcp

MCP server that audits web pages for accessibility issues with axe-core
running in a headless Chromium (Playwright).

Primary entrypoints:
 - cli.py (Typer CLI: serve / audit / summary / report)
 - server.py (MCP stdio server)
 - tools.py (tool descriptors + dispatch)
 - browser.py (Playwright + axe-core invocation)
"""

__version__ = "1.0.0"

__all__ = [
    "browser",
    "server",
    "tools",
    "report",
]
