"""API endpoint connectivity checking."""

import asyncio
from urllib.parse import urlsplit

DEFAULT_PORTS = {"https": 443, "http": 80}


def endpoint_address(url: str) -> tuple[str, int] | None:
    """Extract (host, port) from an API URL, or None if it has no host."""
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    if not parts.hostname:
        return None
    return parts.hostname, port or DEFAULT_PORTS.get(parts.scheme, 443)


async def check_endpoint_online(url: str, timeout: float = 2.0) -> bool:
    """Check if an API endpoint accepts TCP connections.

    Args:
        url: Endpoint URL such as ``https://10.2.0.1:8080``.
        timeout: Connection timeout in seconds.

    Returns:
        True if reachable, False otherwise (including unparseable URLs).
    """
    address = endpoint_address(url)
    if address is None:
        return False

    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(*address),
            timeout=timeout,
        )
        writer.close()
        await writer.wait_closed()
        return True
    except (TimeoutError, OSError):
        return False
