"""Sources of the user profile used to fill forms."""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

import httpx
from pydantic import ValidationError

from apply_autofill.config import settings
from apply_autofill.core.models import UserProfile
from apply_autofill.errors import ProfileUnavailableError
from apply_autofill.utils.logging import get_logger

logger = get_logger(__name__)

USER_ENDPOINT = "/auth/user"

# Status codes meaning "no profile for this caller" rather than a transient failure.
UNAVAILABLE_STATUS_CODES = frozenset({401, 403, 404})


class ProfileClient(Protocol):
    """Provides the current user's profile."""

    async def get_profile(self) -> Optional[UserProfile]:
        """The profile, or None when there is no profile or no authenticated user."""
        ...

    async def refresh_profile(self) -> UserProfile:
        """Fetch a fresh profile, raising ProfileUnavailableError when there is none."""
        ...


def _unwrap(payload: Any) -> Dict[str, Any]:
    if isinstance(payload, dict):
        for key in ("data", "profile", "user"):
            inner = payload.get(key)
            if isinstance(inner, dict):
                return inner
        return payload
    raise ProfileUnavailableError("Profile response is not a JSON object")


def _parse_profile(payload: Any) -> UserProfile:
    try:
        return UserProfile.model_validate(_unwrap(payload))
    except ValidationError as e:
        raise ProfileUnavailableError(f"Profile data is invalid: {e.error_count()} errors") from e


class RemoteProfileClient:
    """Fetches the profile from the backend with a bearer token."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the profile client.

        Args:
            base_url: Backend base URL, defaults to settings
            token: Bearer token of the signed-in user, defaults to settings
            timeout: Request timeout in seconds
            transport: Custom httpx transport, used by tests
        """
        self.base_url = base_url or settings.profile_api_url or ""
        self.token = token if token is not None else settings.profile_api_token
        self.logger = logger.bind(component="profile_client")

        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout or settings.profile_request_timeout,
            transport=transport,
        )

    async def get_profile(self) -> Optional[UserProfile]:
        try:
            return await self.refresh_profile()
        except ProfileUnavailableError as e:
            self.logger.warning("Profile unavailable", reason=str(e))
            return None

    async def refresh_profile(self) -> UserProfile:
        """
        Fetch the profile from the backend.

        Raises:
            ProfileUnavailableError: Not configured, not authenticated or no profile
            httpx.HTTPError: Transport failures and other error statuses
        """
        if not self.base_url:
            raise ProfileUnavailableError("Profile service URL is not configured")
        if not self.token:
            raise ProfileUnavailableError("Not authenticated. Please log in.")

        try:
            response = await self.client.get(USER_ENDPOINT)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in UNAVAILABLE_STATUS_CODES:
                raise ProfileUnavailableError(f"Profile service returned {status}") from e
            self.logger.error("Profile request failed", status=status, error=str(e))
            raise
        except httpx.HTTPError as e:
            self.logger.error("Profile request failed", error=str(e))
            raise

        profile = _parse_profile(response.json())
        self.logger.info("User profile retrieved", has_email=bool(profile.email))
        return profile

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()


class FileProfileClient:
    """Reads the profile from a local JSON file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.logger = logger.bind(component="file_profile_client")

    def _load(self) -> Any:
        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)

    async def get_profile(self) -> Optional[UserProfile]:
        try:
            return await self.refresh_profile()
        except ProfileUnavailableError as e:
            self.logger.warning("Profile unavailable", reason=str(e))
            return None

    async def refresh_profile(self) -> UserProfile:
        if not self.path.exists():
            raise ProfileUnavailableError(f"Profile file not found: {self.path}")
        try:
            payload = await asyncio.to_thread(self._load)
        except json.JSONDecodeError as e:
            raise ProfileUnavailableError(f"Profile file is not valid JSON: {e}") from e
        return _parse_profile(payload)

    async def close(self):
        return None
