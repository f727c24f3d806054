"""HTTP client for gholafetch.

Provides :class:`FetchClient`, an asynchronous client that runs every call
through the request pipeline: middleware, response caching, content
negotiation, timeout/cancellation coordination, and error-hook recovery.

Example::

    from gholafetch.client import FetchClient

    async with FetchClient(base_url="https://api.example.com") as client:
        resp = await client.get("/users")
"""

from gholafetch.client.async_client import FetchClient

__all__ = ["FetchClient"]
