"""Serverless entry point for ``GET /api-docs/api-docs.json``.

The function is deployed behind a proxy integration. Its environment names
the API and stage whose documentation it serves (``restApiId`` and
``stage``); they are read once per cold start into an
:class:`~apidocs.models.ExportConfig` and never taken from the request.

On success the merged OAS3 document is returned as the response body with
``Access-Control-Allow-Origin: *``. On failure the
:class:`~apidocs.exceptions.ExportFailed` error propagates to the runtime;
no fallback document is served.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

from apidocs.export import ExportPipeline
from apidocs.models import ExportConfig
from apidocs.platform.client import PlatformClient

logger = logging.getLogger(__name__)

_config: Optional[ExportConfig] = None


def get_config() -> ExportConfig:
    """Return the export identity, reading the environment on first use."""
    global _config
    if _config is None:
        logging.getLogger("apidocs").setLevel(os.environ.get("APIDOCS_LOG_LEVEL", "INFO"))
        _config = ExportConfig.from_env()
        logger.info("Serving documentation of %s/%s", _config.api_id, _config.stage)
    return _config


def reset_config() -> None:
    """Forget the cached export identity (used by tests)."""
    global _config
    _config = None


def build_client(config: ExportConfig) -> PlatformClient:
    return PlatformClient(region=config.region)


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Proxy-integration handler returning the merged OAS3 document.

    Raises:
        ConfigError: The function environment lacks the API id or stage.
        ExportFailed: The platform export failed.
    """
    config = get_config()
    with build_client(config) as client:
        result = ExportPipeline(client, config).export_oas3()
    return {
        "statusCode": result.status_code,
        "headers": result.headers,
        "body": result.body.decode("utf-8"),
    }
