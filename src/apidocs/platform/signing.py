"""AWS Signature Version 4 for httpx requests.

The platform's management API only accepts SigV4-signed calls. botocore
already knows how to resolve credentials (environment, shared config,
SSO, instance roles) and how to sign; :class:`SigV4Auth` plugs that into
httpx's auth flow so the rest of the client stays plain httpx.
"""

from __future__ import annotations

from typing import Generator, Optional

import httpx
from botocore.auth import SigV4Auth as _BotocoreSigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials
from botocore.session import get_session

from apidocs.exceptions import ConfigError

SERVICE_NAME = "apigateway"

# Hop-by-hop headers may be rewritten in transit and must not be signed.
_UNSIGNED_HEADERS = frozenset({"connection", "content-length", "user-agent"})


def resolve_credentials(profile_name: Optional[str] = None) -> Credentials:
    """Resolve AWS credentials through botocore's standard provider chain.

    Args:
        profile_name: Optional named AWS profile from the shared config files.

    Raises:
        ConfigError: If no credentials can be found.
    """
    session = get_session()
    if profile_name:
        session.set_config_variable("profile", profile_name)
    credentials = session.get_credentials()
    if credentials is None:
        raise ConfigError(
            "No AWS credentials found (set AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY "
            "or configure a profile)"
        )
    return credentials


class SigV4Auth(httpx.Auth):
    """httpx auth that signs each request for the ``apigateway`` service.

    Args:
        credentials: botocore credentials; refreshable credentials are
            frozen per request.
        region: AWS region the management endpoint lives in.
    """

    requires_request_body = True

    def __init__(self, credentials: Credentials, region: str) -> None:
        self._credentials = credentials
        self._region = region

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        headers = {
            k: v for k, v in request.headers.items() if k.lower() not in _UNSIGNED_HEADERS
        }
        aws_request = AWSRequest(
            method=request.method,
            url=str(request.url),
            data=request.content,
            headers=headers,
        )
        frozen = self._credentials.get_frozen_credentials()
        signer = _BotocoreSigV4Auth(frozen, SERVICE_NAME, self._region)
        signer.add_auth(aws_request)

        for name in ("Authorization", "X-Amz-Date", "X-Amz-Security-Token", "X-Amz-Content-SHA256"):
            value = aws_request.headers.get(name)
            if value is not None:
                request.headers[name] = value
        yield request
