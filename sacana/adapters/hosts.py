"""Known host list, fetched once at startup."""

import asyncio
import logging
import ssl
from typing import List, Optional

import aiohttp

from sacana.domain.errors import ConfigError, TransportError

logger = logging.getLogger(__name__)


def parse_host_list(text: str) -> List[str]:
    """One host per line. The first one is the designated responder."""
    return text.strip("\n").split("\n")


async def fetch_host_list(uri: str, certificate_file: Optional[str] = None) -> List[str]:
    request_kwargs = {}
    if certificate_file:
        try:
            request_kwargs["ssl"] = ssl.create_default_context(cafile=certificate_file)
        except (OSError, ssl.SSLError) as e:
            raise ConfigError(f"can't load certificate {certificate_file}: {e}") from e

    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(uri, **request_kwargs) as resp:
                body = await resp.text()
                if resp.status >= 400:
                    raise ConfigError(f"host list {uri} answered HTTP {resp.status}")
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise TransportError(f"can't fetch host list {uri}: {e}") from e

    hosts = parse_host_list(body)
    if not hosts or not hosts[0]:
        raise ConfigError(f"host list {uri} is empty")
    logger.debug("hosts = %s", hosts)
    return hosts
