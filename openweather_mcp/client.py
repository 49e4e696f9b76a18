"""Demo client: connect to a running server over SSE and call each weather tool."""

import asyncio
import logging
from typing import Any, Dict, List, Tuple

import click
from mcp import ClientSession
from mcp.client.sse import sse_client
from mcp.types import CallToolResult

from . import config
from .logging_config import configure_logging

logger = logging.getLogger("weather.client")

DEMO_CALLS: List[Tuple[str, Dict[str, Any]]] = [
    ("get-current-weather", {"city": "New York"}),
    ("get-weather-forecast", {"city": "London"}),
    ("get-weather-by-coordinates", {"lat": 35.6895, "lon": 139.6917}),
]


def result_text(result: CallToolResult) -> str:
    """Join the text items of a tool result."""
    return "\n".join(
        item.text for item in result.content if getattr(item, "type", None) == "text"
    )


async def run_demo(url: str) -> None:
    logger.info("[client] connecting", extra={"url": url})
    async with sse_client(url) as (read_stream, write_stream):
        async with ClientSession(read_stream, write_stream) as session:
            await session.initialize()

            tools = await session.list_tools()
            logger.info(
                "[client] available tools",
                extra={"tools": [tool.name for tool in tools.tools]},
            )

            for name, arguments in DEMO_CALLS:
                result = await session.call_tool(name, arguments)
                click.echo(f"--- {name} {arguments}")
                click.echo(result_text(result))
    logger.info("[client] connection closed")


@click.command()
@click.option("--url", default=config.get_mcp_server_url, help="Server SSE endpoint")
def main(url: str) -> None:
    """Call every weather tool once against a running server."""
    configure_logging(config.get_log_level())
    try:
        asyncio.run(run_demo(url))
    except Exception as e:
        # sse_client surfaces connection failures as ExceptionGroup
        logger.error("[client] error", extra={"url": url, "error": str(e)})
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
