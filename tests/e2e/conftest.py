"""E2E test fixtures for Playwright.

The pytest-playwright plugin automatically provides:
  - page: A new browser page for each test
  - context: A new browser context for each test
  - browser: A browser instance (session scope)

Override base_url with --base-url on the CLI:
    pytest -m e2e --base-url http://localhost:8000
"""

from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from typing import Callable, Generator, List
from uuid import uuid4

import pytest
from playwright.sync_api import APIRequestContext, Playwright

PASSWORD = "testpass123"


@pytest.fixture(scope="session")
def base_url(request) -> str:
    """Provide base URL for Playwright tests.

    Uses --base-url CLI value if given, otherwise defaults to the
    Django dev server running inside the Docker container.
    """
    return request.config.getoption("base_url") or "http://localhost:8000"


@pytest.fixture(autouse=True)
def _use_db() -> None:
    """Override root conftest _use_db: e2e tests hit the server over HTTP,
    they do not need the pytest-django ``db`` fixture (which conflicts
    with Playwright's async event-loop)."""


@pytest.fixture(scope="session")
def api_request_context(
    playwright: Playwright, base_url: str
) -> Generator[APIRequestContext, None, None]:
    """Playwright API context for direct HTTP calls."""
    context = playwright.request.new_context(base_url=base_url)
    yield context
    context.dispose()


def _run_manage_py(command: str) -> None:
    subprocess.run(
        ["python", "src/manage.py", "shell", "-c", command],
        check=True,
        capture_output=True,
        text=True,
    )


def _create_user(username: str, password: str, approved: bool = False) -> None:
    command = (
        "from django.contrib.auth import get_user_model; "
        "from modules.sellers.models import SellerRegistration; "
        "User = get_user_model(); "
        f"User.objects.filter(username={username!r}).delete(); "
        f"user = User.objects.create_user(username={username!r}, "
        f"password={password!r}, first_name={username!r}); "
    )
    if approved:
        command += (
            "SellerRegistration.objects.create(user_id=str(user.pk), "
            f"shop_name={username + ' Store'!r}, status='approved')"
        )
    _run_manage_py(command)


def _delete_user(username: str) -> None:
    command = (
        "from django.contrib.auth import get_user_model; "
        "from modules.sellers.models import SellerRegistration; "
        "User = get_user_model(); "
        f"user = User.objects.filter(username={username!r}).first(); "
        "SellerRegistration.objects.filter(user_id=str(user.pk)).delete() "
        "if user else None; "
        f"User.objects.filter(username={username!r}).delete()"
    )
    _run_manage_py(command)


def _login(api_request_context: APIRequestContext, username: str) -> str:
    response = api_request_context.post(
        "/api/v1/auth/token/",
        data={"username": username, "password": PASSWORD},
    )
    assert response.status == 200
    return response.json()["access"]


@pytest.fixture()
def auth_credentials() -> Generator[tuple[str, str], None, None]:
    """Create a throwaway user and return valid credentials."""
    username = f"e2euser_{uuid4().hex[:8]}"
    _create_user(username, PASSWORD)
    try:
        yield username, PASSWORD
    finally:
        _delete_user(username)


@pytest.fixture()
def auth_token(api_request_context, auth_credentials) -> str:
    """JWT access token for the throwaway user."""
    return _login(api_request_context, auth_credentials[0])


@dataclass
class E2ERetailer:
    user_id: str
    token: str
    address_id: str

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }


@pytest.fixture()
def make_retailer(
    api_request_context,
) -> Generator[Callable[[], E2ERetailer], None, None]:
    """Factory for approved retailers with one default address each."""
    created: List[str] = []

    def _make() -> E2ERetailer:
        username = f"e2eshop_{uuid4().hex[:8]}"
        _create_user(username, PASSWORD, approved=True)
        created.append(username)
        token = _login(api_request_context, username)
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        me = api_request_context.get("/api/v1/me", headers=headers).json()
        address = api_request_context.post(
            "/api/v1/addresses/",
            data=json.dumps(
                {
                    "full_name": username,
                    "phone": "9800000000",
                    "address_line1": "1 Market Road",
                    "city": "Pune",
                    "state": "Maharashtra",
                    "postal_code": "411001",
                    "is_default": True,
                }
            ),
            headers=headers,
        )
        assert address.status == 201
        return E2ERetailer(
            user_id=me["user_id"], token=token, address_id=address.json()["id"]
        )

    yield _make
    for username in created:
        _delete_user(username)
