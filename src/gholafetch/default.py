"""Process-wide default client.

Nothing is constructed at import time.  :func:`get_client` builds the
default :class:`~gholafetch.client.FetchClient` from
:func:`~gholafetch.config.load_config` on first use; :func:`configure`
replaces it explicitly; :func:`reset_client` forgets it so tests start
from a clean slate.

Example::

    import gholafetch

    gholafetch.configure(base_url="https://api.example.com", timeout=5)
    resp = await gholafetch.get_client().get("/health")
"""

from __future__ import annotations

from typing import Any, Optional

from gholafetch.client import FetchClient
from gholafetch.config import load_config
from gholafetch.middleware.chain import MiddlewareLike
from gholafetch.models import ClientConfig

_client: Optional[FetchClient] = None


def get_client() -> FetchClient:
    """Return the default client, creating it from the loaded configuration if needed."""
    global _client
    if _client is None:
        _client = FetchClient.from_config(load_config())
    return _client


def configure(config: Optional[ClientConfig] = None, **options: Any) -> FetchClient:
    """Install a new default client and return it.

    Args:
        config: Build the client from this configuration.
        **options: Otherwise, keyword arguments for
            :class:`~gholafetch.client.FetchClient`.
    """
    global _client
    if config is not None:
        _client = FetchClient.from_config(config, **options)
    else:
        _client = FetchClient(**options)
    return _client


def reset_client() -> None:
    """Forget the default client.

    The next :func:`get_client` call builds a fresh one.  The old client is
    not closed; call its ``aclose()`` first if it owns resources.
    """
    global _client
    _client = None


def use(middleware: MiddlewareLike) -> FetchClient:
    """Register *middleware* on the default client."""
    return get_client().use(middleware)
