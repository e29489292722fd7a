"""HTTP download helper shared by providers and direct download URLs."""

import logging
from pathlib import Path
from urllib.parse import unquote, urlparse

import httpx

from bpm.errors import ProviderFetchError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


def filename_from_url(url: str, fallback: str = "download") -> str:
    """Return the last path segment of a URL.

    Args:
        url: The URL to inspect.
        fallback: Name to use when the URL has no path segment.

    Returns:
        The decoded file name.
    """
    name = unquote(urlparse(url).path.rstrip("/").rsplit("/", 1)[-1])
    return name or fallback


def download_file(client: httpx.Client, url: str, target: Path) -> Path:
    """Stream a URL into a local file.

    Args:
        client: The HTTP client to use (carries auth and transport).
        url: The URL to download.
        target: Local path to write to.

    Returns:
        The path of the written file.

    Raises:
        ProviderFetchError: On transport failures or non-2xx responses.
    """
    logger.debug("download %s to %s", url, target)
    try:
        with client.stream("GET", url, follow_redirects=True) as response:
            response.raise_for_status()
            with target.open("wb") as f:
                for chunk in response.iter_bytes(_CHUNK_SIZE):
                    f.write(chunk)
    except httpx.HTTPError as e:
        target.unlink(missing_ok=True)
        raise ProviderFetchError(f"cannot download {url}: {e}") from e
    return target
