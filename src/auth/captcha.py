"""
Human-verification (reCAPTCHA) check for the register and login endpoints.

The verifier is an injected capability: routes depend on
``get_human_verifier`` and tests override it with a deterministic fake.
"""
import logging
from functools import lru_cache
from typing import Optional, Protocol

import anyio
import httpx

from ..config import settings
from .exceptions import (
    CaptchaMissingException,
    CaptchaVerificationFailedException,
    CaptchaServiceException,
)

logger = logging.getLogger(__name__)


class HumanVerifier(Protocol):
    async def verify(self, token: str, remote_ip: Optional[str] = None) -> bool:
        """Return True if the token is accepted.

        Raises CaptchaServiceException when the service could not give an answer.
        """


class RecaptchaVerifier:
    """
    Verifies tokens against Google's ``siteverify`` endpoint.

    Args:
        secret_key: Server-side reCAPTCHA secret
        verify_url: Verification endpoint
        timeout: Seconds to wait for the whole call
        transport: Optional httpx transport, used by tests
    """

    def __init__(
        self,
        secret_key: str,
        verify_url: str,
        timeout: float,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret_key = secret_key
        self.verify_url = verify_url
        self.timeout = timeout
        self.transport = transport

    async def verify(self, token: str, remote_ip: Optional[str] = None) -> bool:
        data = {"secret": self.secret_key, "response": token}
        if remote_ip:
            data["remoteip"] = remote_ip

        try:
            # httpx timeouts bound each connect/read/write step, not the whole exchange
            with anyio.fail_after(self.timeout):
                async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                    response = await client.post(self.verify_url, data=data)
                    response.raise_for_status()
                    result = response.json()
        except (httpx.TimeoutException, TimeoutError) as e:
            logger.error(f"Captcha verification timed out after {self.timeout}s: {e!r}")
            raise CaptchaServiceException() from e
        except httpx.HTTPError as e:
            logger.error(f"Captcha verification request failed: {e!r}")
            raise CaptchaServiceException() from e
        except ValueError as e:
            logger.error("Captcha verification returned a body that is not JSON")
            raise CaptchaServiceException() from e

        if not isinstance(result, dict):
            logger.error("Captcha verification returned an unexpected payload")
            raise CaptchaServiceException()

        if result.get("success") is True:
            return True

        logger.info(f"Captcha rejected: {result.get('error-codes', [])}")
        return False


@lru_cache
def get_human_verifier() -> HumanVerifier:
    """FastAPI dependency returning the process-wide verifier."""
    return RecaptchaVerifier(
        secret_key=settings.recaptcha_secret_key,
        verify_url=settings.recaptcha_verify_url,
        timeout=settings.recaptcha_timeout_seconds,
    )


async def verify_human(
    token: Optional[str],
    verifier: HumanVerifier,
    remote_ip: Optional[str] = None,
) -> None:
    """
    Run the human-verification gate.

    Raises:
        CaptchaMissingException: If no token was sent
        CaptchaVerificationFailedException: If the service rejected the token
        CaptchaServiceException: If the service could not be reached or answered garbage
    """
    if not token or not token.strip():
        raise CaptchaMissingException()
    if not await verifier.verify(token.strip(), remote_ip):
        raise CaptchaVerificationFailedException()
