"""Hosting platform access for apidocs.

:class:`PlatformClient` is a SigV4-signed :mod:`httpx` client for the
documentation parts, documentation versions, stages and exports of REST
APIs. Everything else in the package reaches the platform through it.

Example::

    from apidocs.platform import PlatformClient

    with PlatformClient(region="eu-west-1") as client:
        response = client.get_export("abc123", "prod")
"""

from apidocs.platform.client import PlatformClient
from apidocs.platform.signing import SigV4Auth, resolve_credentials

__all__ = ["PlatformClient", "SigV4Auth", "resolve_credentials"]
