"""Canonical Pydantic models shared across all apidocs modules.

This is the single source of truth for data shapes in the project. The
models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`OutputConfig`, :class:`GlobalConfig`,
    :class:`Profile`, plus :class:`ExportConfig` which the export handler
    builds from its environment.

**Documentation models** -- what the registry, the version manager and the
export pipeline exchange:
    :class:`LocationKey`, :class:`DocumentationFragment`,
    :class:`FragmentHandle`, :class:`VersionStatus`,
    :class:`VersionSnapshot`, :class:`BuildContext`,
    :class:`ExportRequest`, and :class:`ExportResult`.

All models use Pydantic v2. Value objects that must be hashable
(:class:`LocationKey`, :class:`VersionSnapshot`, :class:`BuildContext`)
are frozen.
"""

from __future__ import annotations

import enum
import os
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from apidocs.exceptions import ConfigError
from apidocs.location import (
    LOCATION_FIELDS,
    LocationType,
    parse_location_type,
    validate_location,
)


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP settings applied to every platform call made for a profile."""

    timeout: float = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/apidocs/config.json``.

    Fields here have the lowest precedence and can be overridden by the
    project config, environment variables, or CLI flags. See
    :func:`~apidocs.config.resolve_config` for the full precedence chain.
    """

    default_profile: Optional[str] = None
    auto_select_single_profile: bool = True
    output: OutputConfig = Field(default_factory=OutputConfig)


class Profile(BaseModel):
    """One documented API deployment: a REST API id, its stage and region.

    Profiles are created with ``apidocs init`` and stored as JSON under the
    ``profiles/`` config directory.
    """

    name: str
    api_id: str = Field(description="Hosting platform REST API id")
    stage: str = Field(description="Deployment stage served to consumers")
    region: str = Field(default="eu-west-1")
    endpoint_url: Optional[str] = Field(
        default=None, description="Override of the platform management endpoint"
    )
    manifest: Optional[str] = Field(
        default=None, description="Default documentation manifest for 'apply'"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)


class ExportConfig(BaseModel):
    """Fixed identity of the API whose merged document the export endpoint serves."""

    model_config = ConfigDict(frozen=True)

    api_id: str
    stage: str
    region: str = "eu-west-1"

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> ExportConfig:
        """Build the export identity from the process environment.

        Reads ``restApiId`` and ``stage`` (the names the deployment sets on
        the function), falling back to ``APIDOCS_API_ID`` and
        ``APIDOCS_STAGE``. The region comes from ``AWS_REGION``.

        Raises:
            ConfigError: If the API id or stage is not set.
        """
        env = os.environ if environ is None else environ
        api_id = env.get("restApiId") or env.get("APIDOCS_API_ID")
        stage = env.get("stage") or env.get("APIDOCS_STAGE")
        if not api_id or not stage:
            raise ConfigError(
                "Export endpoint needs 'restApiId' and 'stage' in its environment"
            )
        region = env.get("AWS_REGION") or env.get("APIDOCS_REGION") or "eu-west-1"
        return cls(api_id=api_id, stage=stage, region=region)


# --- Documentation ---


class LocationKey(BaseModel):
    """Exact place in the API surface a documentation fragment attaches to.

    Construction validates the coordinates against the location type (see
    :data:`~apidocs.location.LOCATION_FIELDS`) and raises
    :class:`~apidocs.exceptions.MalformedLocationKey` on mismatch. Keys are
    frozen and hashable; two keys are equal iff all four fields are equal,
    and an absent field (``None``) never equals a string.

    Example::

        LocationKey(type="PATH_PARAMETER", name="todoId", path="/todo", method="get")
    """

    model_config = ConfigDict(frozen=True)

    type: LocationType
    name: Optional[str] = None
    path: Optional[str] = None
    method: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _check_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        loc_type, name, path, method = validate_location(
            data.get("type"), data.get("name"), data.get("path"), data.get("method")
        )
        return {"type": loc_type, "name": name, "path": path, "method": method}

    @classmethod
    def from_platform(cls, location: dict[str, Any]) -> LocationKey:
        """Rebuild a key from a platform ``location`` object.

        The platform echoes defaults such as ``path: "/"`` or
        ``method: "*"`` for coordinates a type does not use; only the
        coordinates the type requires are kept. A wildcard ``method: "*"``
        on a type that needs a method becomes ``ANY``.
        """
        loc_type = parse_location_type(location.get("type", ""))
        coords = {f: location.get(f) for f in LOCATION_FIELDS[loc_type]}
        if coords.get("method") == "*":
            coords["method"] = "ANY"
        return cls(type=loc_type, **coords)

    def to_platform(self) -> dict[str, str]:
        """Serialise to the platform's ``location`` object, omitting absent fields."""
        return self.model_dump(mode="json", exclude_none=True)

    def __str__(self) -> str:
        parts = [self.type.value]
        if self.method:
            parts.append(self.method)
        if self.path:
            parts.append(self.path)
        if self.name:
            parts.append(f"[{self.name}]")
        return " ".join(parts)


class DocumentationFragment(BaseModel):
    """A documentation payload attached to one :class:`LocationKey`.

    ``properties`` is opaque: standard OpenAPI keys (``summary``,
    ``description``, ``schema``, ``info`` ...) sit next to ``x-`` extension
    keys, and none of them are interpreted here.
    """

    location: LocationKey
    properties: dict[str, Any] = Field(default_factory=dict)
    id: Optional[str] = Field(default=None, description="Platform-assigned part id")


class FragmentHandle(BaseModel):
    """Result of registering a fragment."""

    id: str
    location: LocationKey
    created: bool = Field(
        default=True, description="False when an existing part was updated"
    )


class VersionStatus(str, enum.Enum):
    """Lifecycle of a documentation version.

    A snapshot is ``PROPOSED`` when created and becomes ``ACTIVE`` only
    through an explicit promotion onto a stage.
    """

    PROPOSED = "PROPOSED"
    ACTIVE = "ACTIVE"


class VersionSnapshot(BaseModel):
    """Immutable marker over the documentation state at a point in time."""

    model_config = ConfigDict(frozen=True)

    version_id: str
    description: str = ""
    created_at: datetime
    status: VersionStatus = VersionStatus.PROPOSED


class BuildContext(BaseModel):
    """Values shared by every artifact produced in one registration pass."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), validate_default=True
    )

    @field_validator("timestamp")
    @classmethod
    def _to_milliseconds(cls, value: datetime) -> datetime:
        # Millisecond resolution, the same as version ids.
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.replace(microsecond=value.microsecond // 1000 * 1000)

    @property
    def iso_timestamp(self) -> str:
        return self.timestamp.isoformat()


class ExportRequest(BaseModel):
    """Request for the platform's merged OpenAPI document."""

    api_id: str
    stage: str
    export_format: str = "oas30"
    include_documentation: bool = True


class ExportResult(BaseModel):
    """Response envelope returned by the export pipeline. Never persisted."""

    status_code: int = 200
    body: bytes
    headers: dict[str, str] = Field(default_factory=dict)
