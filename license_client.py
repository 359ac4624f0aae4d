import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from config import settings
from exceptions import Denied, ProtocolError, TransportError
from models import AuthorizationRequest, AuthorizationVerdict, Identity

logger = logging.getLogger(__name__)

AUTH_CHECK_PATH = "/auth/check"


class LicenseClient:
    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_url = (api_url or settings.API_BASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.INSTALLER_API_KEY
        self.timeout = timeout if timeout is not None else settings.LICENSE_API_TIMEOUT
        self.http_client = http_client

    def validate(self, license_key: str, identity: Identity) -> AuthorizationVerdict:
        """
        Ask the authority whether this license may run from this identity.

        Returns the verdict when the authority answers 200 with allowed=true.
        Raises TransportError, ProtocolError or Denied otherwise.
        """
        request = AuthorizationRequest.for_identity(license_key, identity)
        response = self._post(request)

        try:
            verdict = AuthorizationVerdict.model_validate_json(response.content)
        except ValidationError:
            raise ProtocolError(response.status_code, response.text)

        if response.status_code != 200 or not verdict.allowed:
            logger.info(
                "Authorization denied (status %d): %s", response.status_code, verdict.message
            )
            raise Denied(verdict.message, response.status_code)

        logger.info("Authorization granted for %s", identity.public_ip)
        return verdict

    def _post(self, request: AuthorizationRequest) -> httpx.Response:
        if self.http_client is not None:
            return self._send(self.http_client, request)
        with httpx.Client(timeout=self.timeout) as client:
            return self._send(client, request)

    def _send(self, client: httpx.Client, request: AuthorizationRequest) -> httpx.Response:
        url = f"{self.api_url}{AUTH_CHECK_PATH}"
        headers = {
            "Content-Type": "application/json",
            "X-API-KEY": self.api_key,
        }

        # Header values must be ASCII; a bad key or URL fails here, before any I/O
        try:
            http_request = client.build_request(
                "POST", url, content=request.model_dump_json(), headers=headers, timeout=self.timeout
            )
        except (httpx.InvalidURL, UnicodeEncodeError) as e:
            raise TransportError(f"failed to create request: {e}") from e

        try:
            return client.send(http_request)
        except httpx.HTTPError as e:
            logger.debug("Authorization request to %s failed", url, exc_info=True)
            raise TransportError(f"request failed: {e}") from e


def validate_license(
    authority_base: str,
    api_key: str,
    license_key: str,
    identity: Identity,
    http_client: Optional[httpx.Client] = None,
) -> AuthorizationVerdict:
    client = LicenseClient(authority_base, api_key, http_client=http_client)
    return client.validate(license_key, identity)
