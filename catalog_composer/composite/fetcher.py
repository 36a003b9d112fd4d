"""Fetch configuration documents from a local path or a URL."""

import io
import logging
import os
from typing import Any, BinaryIO, Optional, Protocol
from urllib.parse import urlparse

import httpx

from catalog_composer.errors import ConfigFetchError, ConfigOpenError

logger = logging.getLogger(__name__)

HTTP_TIMEOUT = float(os.environ.get("CATALOG_COMPOSER_HTTP_TIMEOUT", "30"))


class HttpGetter(Protocol):
    """Anything that can GET a URL and return a response with ``.content``."""

    def get(self, url: str) -> Any: ...


class DefaultHttpGetter:
    """HttpGetter backed by a short-lived httpx client."""

    def __init__(self, timeout: float = HTTP_TIMEOUT, transport: Optional[httpx.BaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    def get(self, url: str) -> httpx.Response:
        with httpx.Client(timeout=self.timeout, follow_redirects=True, transport=self.transport) as client:
            return client.get(url)


def is_remote(path: str) -> bool:
    """Whether a path should be fetched over HTTP rather than opened locally.

    Absolute filesystem paths and strings without a URI scheme (relative
    paths) are local.
    """
    if os.path.isabs(path):
        return False
    return bool(urlparse(path).scheme)


def fetch_catalog_config(path: str, http_getter: Optional[HttpGetter] = None) -> BinaryIO:
    """Open a configuration document from a local file or a URL.

    The response status is not checked: whatever body the server returns is
    handed to the parser.

    Args:
        path: Absolute or relative filesystem path, or a URL
        http_getter: Used for URLs (defaults to an httpx client)

    Returns:
        Binary stream of the document; the caller closes it

    Raises:
        ConfigOpenError: If a local file cannot be opened
        ConfigFetchError: If a remote GET fails
    """
    if not is_remote(path):
        try:
            return open(path, "rb")
        except OSError as e:
            raise ConfigOpenError(path, str(e)) from e

    getter = http_getter if http_getter is not None else DefaultHttpGetter()
    logger.info(f"Fetching remote configuration: {path}")
    try:
        response = getter.get(path)
    except Exception as e:
        raise ConfigFetchError(path, str(e)) from e
    return io.BytesIO(response.content)
