"""
Registration Service Client

Client for calling the registration service to get event registrations
that campaigns can target.
"""

import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from ..models import EventRegistration
from ..protocols import RegistrationSourceError

logger = logging.getLogger(__name__)


class RegistrationClient:
    """Client for the event registration service"""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def get_event_registrations(self) -> List[EventRegistration]:
        """
        Get all event registrations.

        Raises RegistrationSourceError if the registration service is
        unreachable, answers with an error, or returns records that do not
        parse as registrations.
        """
        try:
            async with self._client() as client:
                response = await client.get(f"{self.base_url}/api/v1/registrations")
                response.raise_for_status()
                data = response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"Registration service returned {e.response.status_code}")
            raise RegistrationSourceError(
                f"Registration service returned {e.response.status_code}"
            ) from e

        except httpx.HTTPError as e:
            logger.error(f"Error fetching event registrations: {e}")
            raise RegistrationSourceError(f"Registration service unreachable: {e}") from e

        except ValueError as e:
            logger.error(f"Registration service returned a non-JSON body: {e}")
            raise RegistrationSourceError("Registration service returned invalid JSON") from e

        registrations = data.get("registrations", []) if isinstance(data, dict) else data
        if not isinstance(registrations, list):
            raise RegistrationSourceError("Registration service returned an unexpected payload")

        try:
            return [EventRegistration.model_validate(item) for item in registrations]
        except ValidationError as e:
            logger.error(f"Malformed event registration record: {e}")
            raise RegistrationSourceError(f"Malformed registration record: {e}") from e

    async def health_check(self) -> bool:
        """Check registration service health"""
        try:
            async with self._client() as client:
                response = await client.get(f"{self.base_url}/health")
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning(f"Registration service health check failed: {e}")
            return False


__all__ = ["RegistrationClient"]
