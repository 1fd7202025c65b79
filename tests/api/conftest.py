"""Fixtures for API tests: an ASGI client with swappable dependencies."""

from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from feedmill.api.main import app


def _provide(value: Any) -> Callable[[], Any]:
    """Zero-argument provider; FastAPI would read a defaulted argument as a query param."""
    return lambda: value


@pytest.fixture
def make_client() -> Callable[..., Any]:
    """
    Build a client with dependency overrides.

    Usage::

        async with make_client({get_materials: store}) as client:
            ...
    """

    @asynccontextmanager
    async def factory(overrides: dict | None = None) -> AsyncGenerator[AsyncClient, None]:
        overrides = overrides or {}
        for dependency, value in overrides.items():
            app.dependency_overrides[dependency] = _provide(value)
        transport = ASGITransport(app=app)
        try:
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                yield client
        finally:
            for dependency in overrides:
                app.dependency_overrides.pop(dependency, None)

    return factory
