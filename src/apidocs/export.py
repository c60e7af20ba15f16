"""Export of the platform-merged OpenAPI 3.0 document.

The hosting platform is the only place where the API structure (resources,
methods, models) and the registered documentation parts are merged. The
pipeline asks it for that merge and hands the result back unchanged; its
own job is the response envelope and the cross-origin header.

Each export is a single request with no caching: a failed export raises
:class:`~apidocs.exceptions.ExportFailed` and never falls back to an older
document.
"""

from __future__ import annotations

import logging
from typing import Optional

from apidocs.exceptions import ExportFailed, InvalidExportRequest, PlatformError
from apidocs.models import ExportConfig, ExportRequest, ExportResult
from apidocs.platform.client import PlatformClient

logger = logging.getLogger(__name__)

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}


class ExportPipeline:
    """Fetches merged OAS3 documents from the platform.

    Args:
        client: An open :class:`~apidocs.platform.PlatformClient`.
        config: Default API identity used when :meth:`export_oas3` is called
            without arguments.
    """

    def __init__(self, client: PlatformClient, config: Optional[ExportConfig] = None) -> None:
        self._client = client
        self._config = config

    def export_oas3(
        self, api_id: Optional[str] = None, stage: Optional[str] = None
    ) -> ExportResult:
        """Export the OAS3 document of *api_id* at *stage*, documentation included.

        Arguments left as ``None`` fall back to the configured identity.

        Raises:
            InvalidExportRequest: The API id or stage is empty. No platform
                call is made.
            ExportFailed: The platform call failed; ``cause`` holds the
                platform error.
        """
        if api_id is None and self._config is not None:
            api_id = self._config.api_id
        if stage is None and self._config is not None:
            stage = self._config.stage
        return self.export(ExportRequest(api_id=api_id or "", stage=stage or ""))

    def export(self, request: ExportRequest) -> ExportResult:
        """Run one :class:`~apidocs.models.ExportRequest`."""
        if not request.api_id.strip():
            raise InvalidExportRequest("Export needs a non-empty API id")
        if not request.stage.strip():
            raise InvalidExportRequest("Export needs a non-empty stage")

        extensions = "documentation" if request.include_documentation else None
        try:
            response = self._client.get_export(
                request.api_id,
                request.stage,
                export_type=request.export_format,
                extensions=extensions,
            )
        except PlatformError as exc:
            logger.warning(
                "Export of %s/%s failed: %s", request.api_id, request.stage, exc
            )
            raise ExportFailed(
                f"Export of {request.api_id}/{request.stage} failed: {exc}", cause=exc
            ) from exc

        logger.info(
            "Exported %s/%s (%d bytes)", request.api_id, request.stage, len(response.content)
        )
        return ExportResult(status_code=200, body=response.content, headers=dict(CORS_HEADERS))
