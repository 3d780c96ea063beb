"""Pytest configuration and shared fixtures.

Fixtures are organized by category:
- Client fixtures: ClientInstance wired to a mocked API
- HTTP fixtures: respx router
- Document fixtures: sample HAL and HAL-FORMS bodies
"""

from typing import Any

import pytest
import respx
import structlog

from hateoas_resource.client import ClientInstance
from hateoas_resource.observability.metrics import get_global_collector

BASE_URL = "https://api.example.com/"


# =============================================================================
# Client Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_metrics():
    """Start every test with empty metrics."""
    get_global_collector().reset()
    yield


@pytest.fixture(autouse=True)
def stdlib_structlog():
    """Route structlog through stdlib logging so events never reach stdout."""
    structlog.configure(
        processors=[structlog.stdlib.add_log_level, structlog.processors.KeyValueRenderer()],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
async def client():
    """ClientInstance bookmarked at the mocked API root."""
    instance = ClientInstance(base_url=BASE_URL)
    yield instance
    await instance.close()


@pytest.fixture
def api():
    """respx router for the mocked API.

    Example:
        def test_something(api, client):
            api.get("/users/1").mock(return_value=hal_response({...}))
    """
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as router:
        yield router


# =============================================================================
# Document Fixtures
# =============================================================================


@pytest.fixture
def hal_user() -> dict[str, Any]:
    """HAL user with a templated relation and an embedded profile."""
    return {
        "_links": {
            "self": {"href": "/users/1"},
            "orders": {"href": "/users/1/orders{?page,size}", "templated": True},
            "avatar": {"href": "/users/1/avatar", "type": "image/png"},
        },
        "_embedded": {
            "profile": {
                "_links": {"self": {"href": "/users/1/profile"}},
                "bio": "Loves REST",
            },
        },
        "id": 1,
        "name": "Alice",
    }


@pytest.fixture
def hal_orders() -> dict[str, Any]:
    """HAL collection of orders with pagination links."""
    return {
        "_links": {
            "self": {"href": "/orders?page=1"},
            "next": {"href": "/orders?page=2"},
        },
        "_embedded": {
            "orders": [
                {"_links": {"self": {"href": "/orders/1"}}, "id": 1, "total": 10},
                {"_links": {"self": {"href": "/orders/2"}}, "id": 2, "total": 25},
            ]
        },
        "count": 2,
    }


@pytest.fixture
def hal_forms_order() -> dict[str, Any]:
    """HAL-FORMS order with an edit template."""
    return {
        "_links": {"self": {"href": "/orders/1"}},
        "_templates": {
            "default": {
                "method": "PUT",
                "contentType": "application/json",
                "properties": [
                    {"name": "note", "type": "text", "required": True, "maxLength": 20},
                    {"name": "quantity", "type": "number", "min": 1, "max": 10},
                ],
            }
        },
        "id": 1,
        "note": "first",
    }
