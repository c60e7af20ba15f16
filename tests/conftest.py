"""Shared test fixtures for apidocs.

Provides isolated config environments, output state management, static
AWS credentials, and an in-memory stand-in for the hosting platform's
documentation API served through :class:`httpx.MockTransport`. These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest
from botocore.credentials import Credentials

from apidocs.models import Profile, RequestConfig
from apidocs.output import OutputFormat, OutputManager, reset_output, set_output
from apidocs.platform.client import PlatformClient


EXAMPLES_DIR = Path(__file__).parent.parent / "examples"

API_ID = "dekq8mivw9"
STAGE = "prod"
REGION = "eu-west-1"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path
    so that tests never touch real user config. Clears all APIDOCS_*
    environment variables and changes the working directory to tmp_path.
    """
    monkeypatch.setattr("apidocs.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "APIDOCS_PROFILE",
        "APIDOCS_API_ID",
        "APIDOCS_STAGE",
        "APIDOCS_REGION",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def sample_profile() -> Profile:
    return Profile(
        name="todo-prod",
        api_id=API_ID,
        stage=STAGE,
        region=REGION,
        request=RequestConfig(timeout=5),
    )


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Platform fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def credentials() -> Credentials:
    """Static credentials so that signing never looks at the environment."""
    return Credentials("AKIDEXAMPLE", "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY")


class FakePlatform:
    """In-memory documentation API of a single region.

    Records every request it receives in :attr:`requests`. Handlers for
    specific ``(method, path)`` pairs can be overridden through
    :meth:`route` to inject failures.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.parts: dict[str, list[dict[str, Any]]] = {}
        self.versions: dict[str, list[dict[str, Any]]] = {}
        self.stages: dict[tuple[str, str], dict[str, Any]] = {}
        self.exports: dict[tuple[str, str], bytes] = {}
        self._routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self._next_id = 0

    # -- configuration -------------------------------------------------- #

    def add_stage(self, api_id: str, stage: str, documentation_version: Optional[str] = None) -> None:
        data: dict[str, Any] = {"stageName": stage}
        if documentation_version:
            data["documentationVersion"] = documentation_version
        self.stages[(api_id, stage)] = data

    def route(
        self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]
    ) -> None:
        self._routes[(method, path)] = handler

    def bodies(self, method: str, suffix: str) -> list[dict[str, Any]]:
        """JSON bodies of recorded requests matching *method* and path *suffix*."""
        return [
            json.loads(r.content)
            for r in self.requests
            if r.method == method and r.url.path.endswith(suffix)
        ]

    # -- transport ------------------------------------------------------ #

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key in self._routes:
            return self._routes[key](request)

        segments = request.url.path.strip("/").split("/")
        if len(segments) < 2 or segments[0] != "restapis":
            return _error(404, "NotFoundException", "Invalid resource")
        api_id = segments[1]
        rest = segments[2:]

        if rest[:2] == ["documentation", "parts"]:
            return self._parts(request, api_id, rest[2:])
        if rest[:2] == ["documentation", "versions"]:
            return self._versions(request, api_id)
        if rest[:1] == ["stages"] and len(rest) >= 2:
            return self._stages(request, api_id, rest[1], rest[2:])
        return _error(404, "NotFoundException", "Invalid resource")

    def _parts(self, request: httpx.Request, api_id: str, rest: list[str]) -> httpx.Response:
        parts = self.parts.setdefault(api_id, [])
        if request.method == "POST":
            body = json.loads(request.content)
            self._next_id += 1
            part = {
                "id": f"part{self._next_id}",
                "location": body["location"],
                "properties": body["properties"],
            }
            parts.append(part)
            return httpx.Response(201, json=part)
        if request.method == "PATCH" and rest:
            for part in parts:
                if part["id"] == rest[0]:
                    for op in json.loads(request.content)["patchOperations"]:
                        if op["path"] == "/properties":
                            part["properties"] = op["value"]
                    return httpx.Response(200, json=part)
            return _error(404, "NotFoundException", "Invalid Documentation part identifier specified")
        if request.method == "GET":
            wanted = request.url.params.get("type")
            items = [p for p in parts if wanted is None or p["location"]["type"] == wanted]
            return httpx.Response(200, json={"item": items})
        return _error(400, "BadRequestException", "Unsupported")

    def _versions(self, request: httpx.Request, api_id: str) -> httpx.Response:
        versions = self.versions.setdefault(api_id, [])
        if request.method == "POST":
            body = json.loads(request.content)
            if any(v["version"] == body["documentationVersion"] for v in versions):
                return _error(409, "ConflictException", "Documentation version already exists")
            version = {
                "version": body["documentationVersion"],
                "description": body.get("description", ""),
                "createdDate": int(body["documentationVersion"]) / 1000,
            }
            versions.append(version)
            return httpx.Response(201, json=version)
        return httpx.Response(200, json={"item": list(versions)})

    def _stages(
        self, request: httpx.Request, api_id: str, stage: str, rest: list[str]
    ) -> httpx.Response:
        if (api_id, stage) not in self.stages:
            return _error(404, "NotFoundException", "Invalid stage identifier specified")
        if rest[:1] == ["exports"]:
            body = self.exports.get((api_id, stage), b'{"openapi": "3.0.1"}')
            return httpx.Response(200, content=body, headers={"content-type": "application/json"})
        data = self.stages[(api_id, stage)]
        if request.method == "PATCH":
            for op in json.loads(request.content)["patchOperations"]:
                if op["path"] == "/documentationVersion":
                    known = {v["version"] for v in self.versions.get(api_id, [])}
                    if op["value"] not in known:
                        return _error(400, "BadRequestException", "Invalid documentation version")
                    data["documentationVersion"] = op["value"]
        return httpx.Response(200, json=data)


def _error(status: int, error_type: str, message: str) -> httpx.Response:
    return httpx.Response(
        status,
        json={"message": message},
        headers={"x-amzn-ErrorType": f"{error_type}:http://internal.amazon.com/coral/"},
    )


@pytest.fixture
def platform() -> FakePlatform:
    fake = FakePlatform()
    fake.add_stage(API_ID, STAGE)
    return fake


@pytest.fixture
def client(platform: FakePlatform, credentials: Credentials) -> PlatformClient:
    """An open PlatformClient wired to the fake platform."""
    with PlatformClient(
        region=REGION,
        credentials=credentials,
        transport=httpx.MockTransport(platform.handle),
    ) as platform_client:
        yield platform_client


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
