import logging
from typing import Any

import httpx

from rtk_stories.domain.constants import (
    ANKI_CONNECT_URL,
    ANKI_CONNECT_VERSION,
    REQUEST_TIMEOUT,
    RESPONSIVENESS_TIMEOUT,
)
from rtk_stories.domain.errors import NotFoundError, TransportError, UpstreamRpcError
from rtk_stories.domain.models import CardRecord
from rtk_stories.domain.ports import NoteStore


class AnkiConnectAdapter(NoteStore):
    """Adapter for communicating with Anki via the AnkiConnect add-on (HTTP API)."""

    def __init__(self, url: str = ANKI_CONNECT_URL, timeout: float = REQUEST_TIMEOUT):
        self.logger = logging.getLogger(__name__)
        self.url = url
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None
        self.logger.debug(f"AnkiConnectAdapter initialized with url={self.url}")

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def is_responsive(self) -> bool:
        """Check if AnkiConnect is reachable and has the expected API version."""
        try:
            payload = {"action": "version", "version": ANKI_CONNECT_VERSION}
            resp = await self._get_client().post(
                self.url, json=payload, timeout=RESPONSIVENESS_TIMEOUT
            )
            if resp.status_code == 200:
                data = resp.json()
                return int(data.get("result", 0)) >= ANKI_CONNECT_VERSION
            return False
        except Exception:
            return False

    async def find_cards(self, query: str) -> list[int]:
        return await self._invoke("findCards", query=query) or []

    async def cards_info(self, card_ids: list[int]) -> list[dict[str, Any]]:
        if not card_ids:
            return []
        return await self._invoke("cardsInfo", cards=card_ids) or []

    async def get_card(self, card_id: int) -> CardRecord:
        infos = await self.cards_info([card_id])
        # cardsInfo answers {} for ids that no longer exist
        if not infos or not infos[0].get("cardId"):
            raise NotFoundError(f"Card {card_id} no longer exists in Anki")
        return CardRecord.from_cards_info(infos[0])

    async def update_note_fields(self, note_id: int, fields: dict[str, str]) -> None:
        await self._invoke("updateNoteFields", note={"id": note_id, "fields": fields})
        self.logger.info(f"[update] nid={note_id} fields={sorted(fields)}")

    async def _invoke(self, action: str, **params) -> Any:
        payload: dict[str, Any] = {"action": action, "version": ANKI_CONNECT_VERSION}
        if params:
            payload["params"] = params
        try:
            resp = await self._get_client().post(self.url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            self.logger.error(f"AnkiConnect call '{action}' failed: {e}")
            raise TransportError(f"Failed to communicate with AnkiConnect.\n\n{e}") from e
        except ValueError as e:
            self.logger.error(f"AnkiConnect returned invalid JSON for '{action}': {e}")
            raise UpstreamRpcError(f"AnkiConnect returned invalid JSON: {e}") from e

        if not isinstance(data, dict) or len(data) != 2:
            raise UpstreamRpcError("response has an unexpected number of fields")
        if "error" not in data:
            raise UpstreamRpcError("response is missing required error field")
        if "result" not in data:
            raise UpstreamRpcError("response is missing required result field")
        if data["error"] is not None:
            self.logger.error(f"AnkiConnect '{action}' reported: {data['error']}")
            raise UpstreamRpcError(str(data["error"]))
        return data["result"]

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
