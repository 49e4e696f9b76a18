"""Configuration for the weather tools server.

Values are read from the environment (a local ``.env`` file is loaded first).

Environment variables:
  OPENWEATHER_API_KEY    - OpenWeather credential.
  REDIS_HOST             - (optional) cache store host. Defaults to '0.0.0.0'.
  REDIS_PORT             - (optional) cache store port. Defaults to 6379.
  REDIS_CONNECT_TIMEOUT  - (optional) seconds for the startup ping. Defaults to 10.
  MCP_TRANSPORT          - (optional) 'stdio', 'sse' or 'streamable-http'.
  PORT                   - (optional) HTTP port for the sse/streamable-http transports.
  LOG_LEVEL              - (optional) root log level. Defaults to 'INFO'.
  NEW_RELIC_ENABLED      - (optional) '1' to initialize the New Relic agent.
  MCP_SERVER_URL         - (optional) SSE endpoint used by the demo client.
"""

import os

from dotenv import load_dotenv

load_dotenv()

OPENWEATHER_API_BASE = "https://api.openweathermap.org/data/2.5"
CACHE_TTL_SECONDS = 60 * 10  # 10 minutes
CACHE_NAMESPACE = "weather"

TRANSPORTS = ("stdio", "sse", "streamable-http")


def get_openweather_api_key() -> str:
    """
    Get the OpenWeather API key from environment variables.

    Returns:
        str: The API key, or a placeholder that the upstream API will reject.
    """
    return os.getenv("OPENWEATHER_API_KEY", "your_api_key_here")


def get_redis_host() -> str:
    return os.getenv("REDIS_HOST", "0.0.0.0")


def get_redis_port() -> int:
    return int(os.getenv("REDIS_PORT", "6379"))


def get_redis_connect_timeout() -> float:
    """
    Get the timeout applied to the eager connection attempt at startup.

    Returns:
        float: Timeout in seconds, defaults to 10.
    """
    return float(os.getenv("REDIS_CONNECT_TIMEOUT", "10"))


def get_transport() -> str:
    return os.getenv("MCP_TRANSPORT", "stdio")


def get_server_port() -> int:
    return int(os.getenv("PORT", "10203"))


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def is_new_relic_enabled() -> bool:
    return os.getenv("NEW_RELIC_ENABLED", "0") == "1"


def get_mcp_server_url() -> str:
    """
    Get the SSE endpoint the demo client connects to.

    Returns:
        str: Full URL of the server's SSE endpoint.
    """
    return os.getenv("MCP_SERVER_URL", f"http://localhost:{get_server_port()}/sse")
