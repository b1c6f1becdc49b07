"""
CommunityOS Bot - Paco Hub Client
HTTP calls to the Hub: agent interaction, knowledge base search, support tickets.
"""

from typing import List, Optional

import aiohttp

from config import PACO_HUB_URL, HUB_TIMEOUT, HUB_ENDPOINTS
import logger as log

DEFAULT_REPLY = "I processed your request."
TICKET_PRIORITIES = ("low", "medium", "high", "critical")


class HubError(Exception):
    """The Hub was unreachable or answered with a non-2xx status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class HubClient:
    """Thin async client over the Hub's JSON API with a reusable session."""

    def __init__(self, base_url: str = PACO_HUB_URL, timeout: float = HUB_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def get_session(self) -> aiohttp.ClientSession:
        """Get or create the shared HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def _request(self, method: str, endpoint: str, **kwargs) -> dict:
        session = await self.get_session()
        url = f"{self.base_url}{endpoint}"
        try:
            async with session.request(method, url, **kwargs) as response:
                if response.status < 200 or response.status >= 300:
                    body = await response.text()
                    raise HubError(f"Hub returned {response.status}: {body[:200]}", response.status)
                return await response.json(content_type=None) or {}
        except aiohttp.ClientError as e:
            raise HubError(f"Hub request failed: {e}") from e

    # --- Agents ---

    async def interact(
        self,
        agent_id: str,
        message: str,
        system_prompt: Optional[str] = None,
        context: Optional[dict] = None,
    ) -> dict:
        """Send a message to an agent. Returns {response, agent_name, agent_id}.

        Raises HubError on transport failure or a non-2xx reply.
        """
        payload = {"agentId": agent_id, "message": message, "context": context or {}}
        if system_prompt is not None:
            payload["systemPrompt"] = system_prompt

        data = await self._request("POST", HUB_ENDPOINTS["agent_interact"], json=payload)
        return {
            "response": data.get("response") or data.get("message") or DEFAULT_REPLY,
            "agent_name": data.get("agentName") or agent_id,
            "agent_id": data.get("agentId") or agent_id,
        }

    # --- Knowledge Base ---

    async def search_kb(self, query: str, limit: int = 5) -> List[dict]:
        """Search the knowledge base. Failures are logged and yield no results."""
        try:
            data = await self._request(
                "GET", HUB_ENDPOINTS["kb_search"], params={"q": query, "limit": str(limit)}
            )
        except HubError as e:
            log.warn(f"KB search failed: {e}")
            return []
        return data.get("results") or []

    # --- Support ---

    async def create_ticket(
        self,
        description: str,
        user_id: str,
        user_name: str,
        priority: str = "medium",
    ) -> dict:
        """Open a support ticket on behalf of a Discord user. Raises HubError."""
        if priority not in TICKET_PRIORITIES:
            raise ValueError(f"Priority must be one of: {', '.join(TICKET_PRIORITIES)}")

        title = description[:50] + ("..." if len(description) > 50 else "")
        payload = {
            "title": f"Discord: {title}",
            "description": description,
            "priority": priority,
            "category": "discord",
            "customer": {
                "name": user_name,
                "email": f"{user_id}@discord.user",
                "plan": "community",
            },
            "tags": ["discord"],
        }
        data = await self._request("POST", HUB_ENDPOINTS["support_tickets"], json=payload)
        return data.get("ticket") or {}
