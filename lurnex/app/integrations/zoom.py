"""
Zoom meeting link provider.

Uses Server-to-Server OAuth (account credentials grant). The access token is
cached on the provider instance and refreshed lazily a minute before Zoom says
it expires.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple

import httpx

from lurnex.app.core.errors import ExternalServiceError
from lurnex.app.core.settings import get_settings
from lurnex.app.core.time import ensure_utc, utc_now

logger = logging.getLogger(__name__)

TOKEN_EXPIRY_MARGIN_SECONDS = 60


class ZoomTokenCache:
    """Holds one access token and its expiry; fetches a new one when missing or stale."""

    def __init__(self, fetch: Callable[[], Tuple[str, int]], clock: Callable[[], datetime] = utc_now):
        self._fetch = fetch
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at: Optional[datetime] = None

    def get(self) -> str:
        if self._token and self._expires_at and self._clock() < self._expires_at:
            return self._token
        token, expires_in = self._fetch()
        self._token = token
        self._expires_at = self._clock() + timedelta(seconds=max(expires_in - TOKEN_EXPIRY_MARGIN_SECONDS, 0))
        return token

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = None


class ZoomMeetingProvider:
    def __init__(
        self,
        account_id: str,
        client_id: str,
        client_secret: str,
        api_base_url: str = "https://api.zoom.us/v2",
        oauth_url: str = "https://zoom.us/oauth/token",
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        self.account_id = account_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.api_base_url = api_base_url.rstrip("/")
        self.oauth_url = oauth_url
        self._client = client or httpx.Client(timeout=timeout)
        self.token_cache = ZoomTokenCache(self._request_token)

    @classmethod
    def from_settings(cls, settings=None) -> "ZoomMeetingProvider":
        settings = settings or get_settings()
        return cls(
            account_id=settings.zoom_account_id,
            client_id=settings.zoom_client_id,
            client_secret=settings.zoom_client_secret,
            api_base_url=settings.zoom_api_base_url,
            oauth_url=settings.zoom_oauth_url,
            timeout=settings.zoom_timeout_seconds,
        )

    def _request_token(self) -> Tuple[str, int]:
        try:
            response = self._client.post(
                self.oauth_url,
                params={"grant_type": "account_credentials", "account_id": self.account_id},
                auth=(self.client_id, self.client_secret),
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error getting Zoom access token: %s", exc)
            raise ExternalServiceError("Could not authenticate with Zoom API.") from exc

        token = data.get("access_token")
        if not token:
            logger.error("Zoom token response did not include an access token")
            raise ExternalServiceError("Could not authenticate with Zoom API.")
        return token, int(data.get("expires_in", 3600))

    def create_meeting(self, topic: str, start_time: datetime, duration_minutes: int) -> str:
        """Create a scheduled meeting and return the join URL students will use."""
        access_token = self.token_cache.get()
        payload = {
            "topic": topic,
            "type": 2,  # scheduled meeting
            "start_time": ensure_utc(start_time).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "duration": duration_minutes,
            "settings": {
                "join_before_host": True,
                "mute_upon_entry": True,
                "participant_video": True,
                "host_video": True,
                "auto_recording": "cloud",
            },
        }
        try:
            response = self._client.post(
                f"{self.api_base_url}/users/me/meetings",
                json=payload,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            if response.status_code == 401:
                self.token_cache.invalidate()
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error creating Zoom meeting for %r: %s", topic, exc)
            raise ExternalServiceError("Failed to create Zoom meeting.") from exc

        join_url = data.get("join_url")
        if not join_url:
            logger.error("Zoom meeting response for %r had no join_url", topic)
            raise ExternalServiceError("Failed to create Zoom meeting.")
        return join_url


_provider_instance = None


def get_meeting_provider() -> ZoomMeetingProvider:
    """FastAPI dependency: one provider (and token cache) per process."""
    global _provider_instance
    if _provider_instance is None:
        _provider_instance = ZoomMeetingProvider.from_settings()
    return _provider_instance
