"""Synchronous client for the hosting platform's documentation API.

This module provides :class:`PlatformClient`, the only component that
talks to the hosting platform. It wraps :class:`httpx.Client` and layers on:

- **SigV4 signing** -- every request is signed with botocore credentials
  via :class:`~apidocs.platform.signing.SigV4Auth`.
- **Dry-run mode** -- prints the request to stderr and returns a synthetic
  response without sending traffic.
- **Error mapping** -- platform rejections become
  :class:`~apidocs.exceptions.PlatformRejected`; throttling, 5xx, timeouts
  and network failures become
  :class:`~apidocs.exceptions.TransientPlatformError`.

Nothing is retried here. Whether a documentation part or version may
safely be created twice is the caller's call to make.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterator, Optional
from urllib.parse import quote

import httpx
from botocore.credentials import Credentials

from apidocs.exceptions import PlatformRejected, TransientPlatformError
from apidocs.models import Profile, RequestConfig
from apidocs.output import get_output
from apidocs.platform.signing import SigV4Auth, resolve_credentials

logger = logging.getLogger(__name__)

_PAGE_LIMIT = 500


class PlatformClient:
    """Client for documentation parts, versions, stages and exports of REST APIs.

    Must be used as a context manager so that the underlying transport is
    properly opened and closed.

    Args:
        region: Region of the management endpoint.
        endpoint_url: Override of ``https://apigateway.<region>.amazonaws.com``.
        request: Timeout and SSL settings.
        credentials: botocore credentials. Resolved from the default chain
            on enter when omitted (and not in dry-run mode).
        dry_run: When ``True``, requests are printed to stderr and a
            synthetic response is returned without network I/O.
        transport: Optional httpx transport, used by tests to stub the platform.

    Example::

        with PlatformClient.from_profile(profile) as client:
            client.create_documentation_version(profile.api_id, "1700000000000", "nightly")
    """

    def __init__(
        self,
        region: str,
        endpoint_url: Optional[str] = None,
        request: Optional[RequestConfig] = None,
        credentials: Optional[Credentials] = None,
        dry_run: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._region = region
        self._base_url = endpoint_url or f"https://apigateway.{region}.amazonaws.com"
        self._request_config = request or RequestConfig()
        self._credentials = credentials
        self._dry_run = dry_run
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @classmethod
    def from_profile(cls, profile: Profile, **kwargs: Any) -> PlatformClient:
        """Build a client for the region, endpoint and request settings of *profile*."""
        return cls(
            region=profile.region,
            endpoint_url=profile.endpoint_url,
            request=profile.request,
            **kwargs,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> PlatformClient:
        auth: Optional[httpx.Auth] = None
        if not self._dry_run:
            credentials = self._credentials or resolve_credentials()
            auth = SigV4Auth(credentials, self._region)
        self._client = httpx.Client(
            base_url=self._base_url,
            auth=auth,
            timeout=self._request_config.timeout,
            verify=self._request_config.verify_ssl,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Documentation parts
    # ------------------------------------------------------------------ #

    def create_documentation_part(
        self, api_id: str, location: dict[str, str], properties: str
    ) -> dict[str, Any]:
        """Create a documentation part. ``properties`` is a JSON string."""
        response = self.request(
            "POST",
            f"{_api_path(api_id)}/documentation/parts",
            json_body={"location": location, "properties": properties},
        )
        return _json(response)

    def update_documentation_part(
        self, api_id: str, part_id: str, properties: str
    ) -> dict[str, Any]:
        """Replace the properties of an existing documentation part."""
        response = self.request(
            "PATCH",
            f"{_api_path(api_id)}/documentation/parts/{quote(part_id, safe='')}",
            json_body={
                "patchOperations": [
                    {"op": "replace", "path": "/properties", "value": properties}
                ]
            },
        )
        return _json(response)

    def get_documentation_parts(
        self, api_id: str, location_type: Optional[str] = None
    ) -> Iterator[dict[str, Any]]:
        """Yield every documentation part, following the platform's paging cursor."""
        params: dict[str, Any] = {"limit": _PAGE_LIMIT}
        if location_type:
            params["type"] = location_type
        yield from self._paginate(f"{_api_path(api_id)}/documentation/parts", params)

    # ------------------------------------------------------------------ #
    # Documentation versions and stages
    # ------------------------------------------------------------------ #

    def create_documentation_version(
        self, api_id: str, version: str, description: str
    ) -> dict[str, Any]:
        """Record a documentation version. No stage is associated with it."""
        response = self.request(
            "POST",
            f"{_api_path(api_id)}/documentation/versions",
            json_body={"documentationVersion": version, "description": description},
        )
        return _json(response)

    def get_documentation_versions(self, api_id: str) -> Iterator[dict[str, Any]]:
        yield from self._paginate(
            f"{_api_path(api_id)}/documentation/versions", {"limit": _PAGE_LIMIT}
        )

    def get_stage(self, api_id: str, stage: str) -> dict[str, Any]:
        return _json(self.request("GET", _stage_path(api_id, stage)))

    def update_stage_documentation_version(
        self, api_id: str, stage: str, version: str
    ) -> dict[str, Any]:
        """Point *stage* at documentation *version*."""
        response = self.request(
            "PATCH",
            _stage_path(api_id, stage),
            json_body={
                "patchOperations": [
                    {"op": "replace", "path": "/documentationVersion", "value": version}
                ]
            },
        )
        return _json(response)

    # ------------------------------------------------------------------ #
    # Export
    # ------------------------------------------------------------------ #

    def get_export(
        self,
        api_id: str,
        stage: str,
        export_type: str = "oas30",
        extensions: Optional[str] = "documentation",
    ) -> httpx.Response:
        """Fetch the platform-merged API definition for *stage*.

        The response is returned untouched so that the body can be passed
        through byte-for-byte.
        """
        params = {"extensions": extensions} if extensions else None
        return self.request(
            "GET",
            f"{_stage_path(api_id, stage)}/exports/{quote(export_type, safe='')}",
            params=params,
        )

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
    ) -> httpx.Response:
        """Send one signed request and map error statuses to exceptions.

        Raises:
            PlatformRejected: On 4xx responses other than 429.
            TransientPlatformError: On 429, 5xx, timeouts and network errors.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        if self._dry_run:
            return self._print_dry_run(method, path, params, json_body)

        merged_headers: dict[str, str] = {"Accept": "application/json"}
        merged_headers.update(headers or {})
        content: Optional[str] = None
        if json_body is not None:
            content = json.dumps(json_body)
            merged_headers["Content-Type"] = "application/json"

        logger.debug("%s %s%s", method, self._base_url, path)
        try:
            response = self._client.request(
                method, path, headers=merged_headers, params=params, content=content
            )
        except httpx.TimeoutException as exc:
            raise TransientPlatformError(
                f"Platform call timed out: {method} {path}"
            ) from exc
        except httpx.TransportError as exc:
            raise TransientPlatformError(f"Platform unreachable: {exc}") from exc

        self._map_response_error(response)
        return response

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _paginate(self, path: str, params: dict[str, Any]) -> Iterator[dict[str, Any]]:
        query = dict(params)
        while True:
            page = _json(self.request("GET", path, params=query))
            items = page.get("item")
            if items is None:
                items = page.get("_embedded", {}).get("item", [])
            if isinstance(items, dict):
                items = [items]
            yield from items
            position = page.get("position")
            if not position:
                return
            query["position"] = position

    def _print_dry_run(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]],
        json_body: Optional[Any],
    ) -> httpx.Response:
        """Print the request that would be sent and return a synthetic response."""
        output = get_output()
        output.info(f"[dry-run] {method} {self._base_url}{path}")
        if params:
            output.info(f"[dry-run] Params: {params}")
        if json_body is not None:
            output.info(f"[dry-run] Body: {json.dumps(json_body, indent=2)}")

        if method == "GET" and "/exports/" in path:
            payload: Any = {"openapi": "3.0.1", "info": {}, "paths": {}}
        elif method == "GET":
            payload = {"item": []}
        else:
            payload = {"id": "dry-run"}
        return httpx.Response(
            status_code=200,
            json=payload,
            request=httpx.Request(method, f"{self._base_url}{path}"),
        )

    def _map_response_error(self, response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        error_type = response.headers.get("x-amzn-ErrorType", "").split(":")[0] or None
        msg = ""
        try:
            detail = response.json()
            if isinstance(detail, dict):
                msg = detail.get("message") or detail.get("Message") or ""
        except json.JSONDecodeError:
            msg = response.text[:200]
        label = error_type or f"HTTP {status}"
        text = f"{label}: {msg}" if msg else label

        if status == 429 or status >= 500:
            raise TransientPlatformError(text, status_code=status, error_type=error_type)
        raise PlatformRejected(text, status_code=status, error_type=error_type)


def _api_path(api_id: str) -> str:
    return f"/restapis/{quote(api_id, safe='')}"


def _stage_path(api_id: str, stage: str) -> str:
    return f"{_api_path(api_id)}/stages/{quote(stage, safe='')}"


def _json(response: httpx.Response) -> dict[str, Any]:
    if not response.content:
        return {}
    try:
        data = response.json()
    except json.JSONDecodeError as exc:
        raise PlatformRejected(
            f"Platform returned a non-JSON body (HTTP {response.status_code})",
            status_code=response.status_code,
        ) from exc
    return data if isinstance(data, dict) else {"item": data}
