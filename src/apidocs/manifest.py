"""Documentation manifests and the registration pass that applies them.

A manifest lists the documentation fragments of one API in YAML or JSON::

    version:
      description: "Documentation generated at {timestamp}"
    mode: append
    fragments:
      - location: {type: API}
        properties:
          info: {title: Todo API}
      - location: {type: PATH_PARAMETER, name: todoId, path: /todo, method: GET}
        properties: {description: The id of the todo}

:func:`load_manifest` reads and validates the whole file up front, so a
malformed location anywhere in it is reported before anything is sent to
the platform. :func:`apply_manifest` then registers every fragment and
records one version snapshot. All of them share one
:class:`~apidocs.models.BuildContext`, so every ``{timestamp}`` placeholder
in the pass renders the same instant.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from apidocs.exceptions import ManifestError
from apidocs.models import BuildContext, FragmentHandle, LocationKey, VersionSnapshot
from apidocs.registry import DocumentationRegistry, RegistrationMode
from apidocs.versions import DEFAULT_DESCRIPTION, VersionSnapshotManager

TIMESTAMP_PLACEHOLDER = "{timestamp}"


class ManifestFragment(BaseModel):
    location: LocationKey
    properties: dict[str, Any] = Field(default_factory=dict)


class ManifestVersion(BaseModel):
    description: str = DEFAULT_DESCRIPTION


class Manifest(BaseModel):
    """Parsed documentation manifest."""

    fragments: list[ManifestFragment] = Field(default_factory=list)
    version: ManifestVersion = Field(default_factory=ManifestVersion)
    mode: RegistrationMode = RegistrationMode.APPEND

    @model_validator(mode="after")
    def _unique_locations(self) -> Manifest:
        seen: set[LocationKey] = set()
        for fragment in self.fragments:
            if fragment.location in seen:
                raise ManifestError(f"Location documented twice: {fragment.location}")
            seen.add(fragment.location)
        return self


class ApplyReport(BaseModel):
    """Outcome of one registration pass."""

    context: BuildContext
    handles: list[FragmentHandle] = Field(default_factory=list)
    snapshot: Optional[VersionSnapshot] = None

    @property
    def created(self) -> int:
        return sum(1 for h in self.handles if h.created)

    @property
    def updated(self) -> int:
        return sum(1 for h in self.handles if not h.created)


# --- Loading ---


def load_manifest(source: str) -> Manifest:
    """Load a manifest from a file path, or from stdin when *source* is ``-``.

    Raises:
        ManifestError: The file is missing, unreadable, not JSON/YAML, or
            does not match the manifest layout.
        MalformedLocationKey: A fragment location does not fit its type.
    """
    if source == "-":
        content = sys.stdin.read()
        hint = ""
    else:
        path = Path(source)
        if not path.is_file():
            raise ManifestError(f"Manifest not found: {source}")
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ManifestError(f"Failed to read manifest {source}: {exc}") from exc
        suffix = path.suffix.lower()
        hint = "json" if suffix == ".json" else "yaml" if suffix in (".yaml", ".yml") else ""

    if not content.strip():
        raise ManifestError(f"Manifest is empty: {source}")
    return parse_manifest(_parse_content(content, hint))


def parse_manifest(data: dict[str, Any]) -> Manifest:
    """Validate an already-decoded manifest document."""
    try:
        return Manifest.model_validate(data)
    except ValidationError as exc:
        raise ManifestError(f"Invalid manifest: {exc}") from exc


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse *content* as JSON, then YAML (JSON is also valid YAML)."""
    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise ManifestError(f"Invalid JSON: {exc}") from exc
        else:
            return _require_object(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ManifestError(f"Failed to parse manifest as JSON or YAML: {exc}") from exc
    return _require_object(result)


def _require_object(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise ManifestError(f"Manifest must be an object (got {kind})")
    return result


# --- Rendering and applying ---


def render(value: Any, context: BuildContext) -> Any:
    """Replace ``{timestamp}`` in every string nested in *value*."""
    if isinstance(value, str):
        return value.replace(TIMESTAMP_PLACEHOLDER, context.iso_timestamp)
    if isinstance(value, dict):
        return {k: render(v, context) for k, v in value.items()}
    if isinstance(value, list):
        return [render(v, context) for v in value]
    return value


def apply_manifest(
    manifest: Manifest,
    registry: DocumentationRegistry,
    versions: VersionSnapshotManager,
    context: Optional[BuildContext] = None,
    mode: Optional[RegistrationMode] = None,
    snapshot: bool = True,
) -> ApplyReport:
    """Register every fragment of *manifest*, then record one version snapshot.

    The snapshot is left ``PROPOSED``; promoting it is a separate step.
    Registration stops at the first platform error, which propagates; parts
    registered before it stay on the platform.

    Args:
        manifest: The validated manifest.
        registry: Registry of the target API.
        versions: Version manager of the target API.
        context: Shared build context; a fresh one is created when omitted.
        mode: Overrides the manifest's registration mode.
        snapshot: Set to ``False`` to register fragments without a version.
    """
    context = context or BuildContext()
    report = ApplyReport(context=context)
    for fragment in manifest.fragments:
        report.handles.append(
            registry.register(
                fragment.location,
                render(fragment.properties, context),
                mode=mode or manifest.mode,
            )
        )
    if snapshot:
        report.snapshot = versions.create_snapshot(
            manifest.version.description, context=context
        )
    return report
