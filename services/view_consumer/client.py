"""
Zendesk REST Client
Reads ticket view events, tickets and users from the Zendesk Support API
"""

from typing import Any, Optional

import httpx
import structlog

logger = structlog.get_logger()

VIEW_EVENT_TYPE = "ticket.view"


class ZendeskAPIError(Exception):
    """Raised when a Zendesk request fails at the transport or HTTP level"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ZendeskClient:
    """
    Async client for the Zendesk Support API

    Authenticates with HTTP basic auth using "{email}/token" and an API token.
    """

    def __init__(
        self,
        subdomain: str,
        email: str,
        api_token: str,
        timeout: float = 30.0,
        base_url: Optional[str] = None,
        max_pages: int = 100,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or f"https://{subdomain}.zendesk.com").rstrip("/")
        self.max_pages = max_pages
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            auth=(f"{email}/token", api_token),
            timeout=timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def _get(self, url: str, params: Optional[dict] = None) -> dict:
        """GET a JSON document, converting failures to ZendeskAPIError"""
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise ZendeskAPIError(
                f"Zendesk returned {e.response.status_code} for {e.request.url.path}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ZendeskAPIError(f"Zendesk request failed: {e}") from e
        except ValueError as e:
            raise ZendeskAPIError(f"Zendesk returned invalid JSON: {e}") from e

    async def list_view_events(
        self,
        created_after: int,
        event_type: str = VIEW_EVENT_TYPE,
    ) -> list[dict]:
        """
        Fetch all events of a type created after an epoch timestamp

        Args:
            created_after: Window start as integer epoch seconds
            event_type: Zendesk event type filter

        Returns:
            List of raw event dictionaries, across all result pages
        """
        params: Optional[dict] = {
            "filter[type]": event_type,
            "filter[created_after]": created_after,
        }
        url = "/api/v2/events"
        events: list[dict] = []
        pages = 0

        while url:
            if pages >= self.max_pages:
                logger.warning("Too many event pages", pages=pages, max_pages=self.max_pages)
                raise ZendeskAPIError(
                    f"Event listing exceeded {self.max_pages} pages; refusing a partial batch"
                )
            data = await self._get(url, params=params)
            pages += 1
            events.extend(data.get("events") or [])
            url = self._next_page(data)
            if url:
                self._check_same_host(url)
            # next_page links already carry the query string
            params = None

        logger.debug("Fetched events", count=len(events), pages=pages, created_after=created_after)
        return events

    @staticmethod
    def _next_page(data: dict) -> Optional[str]:
        if data.get("next_page"):
            return data["next_page"]
        links = data.get("links") or {}
        meta = data.get("meta") or {}
        if meta.get("has_more") and links.get("next"):
            return links["next"]
        return None

    def _check_same_host(self, url: str):
        """Credentials are only sent to the configured Zendesk host"""
        host = httpx.URL(url).host
        if host and host != httpx.URL(self.base_url).host:
            raise ZendeskAPIError(f"Refusing to follow pagination link to foreign host {host}")

    async def get_ticket(self, ticket_id: int) -> dict[str, Any]:
        """Fetch a single ticket"""
        data = await self._get(f"/api/v2/tickets/{ticket_id}")
        return data["ticket"]

    async def get_user(self, user_id: int) -> dict[str, Any]:
        """Fetch a single user"""
        data = await self._get(f"/api/v2/users/{user_id}")
        return data["user"]

    async def check_health(self) -> bool:
        """Check that the API is reachable with the configured credentials"""
        try:
            await self._get("/api/v2/users/me")
            return True
        except ZendeskAPIError as e:
            logger.warning("Zendesk health check failed", error=str(e))
            return False

    async def close(self):
        """Close the underlying HTTP client"""
        await self._client.aclose()
