"""
Shared pytest fixtures for all tests.

This module provides common fixtures used across multiple test modules.
Individual test modules can override these fixtures if needed.

Factories
---------
Import factories directly from their modules:

    from tests.accounts.factories import ProfessionalFactory, CommanderFactory
    from tests.incidents.factories import EventFactory
    from tests.camps.factories import CampFactory

Example usage:

    @pytest.mark.django_db
    def test_something(commander, event):
        camp = CampFactory.create(event=event, capacity=2)
"""

from collections.abc import Callable
from typing import Any, cast

import pytest
from django.core.cache import cache
from django.http import HttpRequest
from django.test import Client, RequestFactory
from django.test.client import WSGIRequest  # type: ignore[attr-defined]

from apps.core.auth import AuthContext
from apps.core.types import AuthenticatedHttpRequest


@pytest.fixture(autouse=True)
def _clear_cache():
    """Rate limit and lockout counters must not leak between tests."""
    cache.clear()
    yield
    cache.clear()


class MockRequest(HttpRequest):
    """
    HttpRequest subclass for tests that allows setting auth attribute.

    Example:
        request = MockRequest()
        request.auth = AuthContext(professional=professional)
    """

    auth: AuthContext


def make_request_with_auth(request: "WSGIRequest", auth: AuthContext) -> AuthenticatedHttpRequest:
    """
    Set auth on a request and return it typed as AuthenticatedHttpRequest.

    Example:
        request = request_factory.get("/api/v1/endpoint")
        request = make_request_with_auth(request, AuthContext(professional=professional))
    """
    request.auth = auth  # type: ignore[attr-defined]
    return cast(AuthenticatedHttpRequest, request)


@pytest.fixture
def request_factory() -> RequestFactory:
    """Django request factory for unit testing views without the HTTP stack."""
    return RequestFactory()


@pytest.fixture
def api_client() -> Client:
    """
    Django test client for full HTTP request/response cycle tests.

    Example:
        def test_api_returns_200(api_client):
            response = api_client.get("/api/v1/health")
            assert response.status_code == 200
    """
    return Client()


@pytest.fixture
def commander():
    """A Commander with no current event."""
    from tests.accounts.factories import CommanderFactory

    return CommanderFactory.create()


@pytest.fixture
def event(commander):
    """An in-progress event the commander is working."""
    from tests.incidents.factories import EventFactory

    event = EventFactory.create(created_by=commander)
    commander.current_event = event
    commander.save(update_fields=["current_event"])
    return event


@pytest.fixture
def member_of() -> Callable[..., Any]:
    """
    Factory fixture for a professional already working an event.

    Example:
        def test_x(member_of, event):
            medic = member_of(event, role=Role.PARAMEDIC)
    """
    from tests.accounts.factories import ProfessionalFactory

    def _make(event: Any, **kwargs: Any) -> Any:
        return ProfessionalFactory.create(current_event=event, **kwargs)

    return _make


@pytest.fixture
def login_client() -> Callable[[Any], Client]:
    """
    Factory fixture returning a test client logged in as the given professional.

    Example:
        def test_endpoint(login_client, commander):
            client = login_client(commander)
            response = client.get("/api/v1/auth/me")
    """

    def _make(professional: Any) -> Client:
        client = Client()
        client.force_login(professional)
        return client

    return _make
