import logging
import re

import httpx

from cardmaker import config
from cardmaker.errors import PersistenceError, SyncWarning
from cardmaker.models.schemas import Card

logger = logging.getLogger("uvicorn.error")

_NEWLINE = re.compile(r"\r?\n")


def to_html(text: str) -> str:
    """Rewrite newlines as <br>, the line break Anki renders."""
    return _NEWLINE.sub("<br>", text)


def note_fields(card: Card) -> dict[str, str]:
    fields = {
        "Front": to_html(card.front),
        "Back": to_html(card.back),
    }
    if card.extra is not None:
        fields["Extra"] = to_html(card.extra)
    return fields


class AnkiConnect:
    """Async client for the AnkiConnect add-on's JSON API."""

    def __init__(
        self,
        url: str = config.ANKI_CONNECT_URL,
        api_version: int = config.ANKI_CONNECT_VERSION,
        timeout: float = config.ANKI_CONNECT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.api_version = api_version
        self.timeout = timeout
        self.transport = transport

    async def invoke(self, action: str, params: dict | None = None):
        """Send one action and return its ``result``.

        Raises PersistenceError on transport failure, a non-2xx status, or a
        non-null ``error`` in the body (whatever the status).
        """
        payload = {"action": action, "version": self.api_version}
        if params is not None:
            payload["params"] = params

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            raise PersistenceError(
                f"Could not connect to AnkiConnect at {self.url}. "
                f"Make sure Anki is running with AnkiConnect installed. ({e})"
            ) from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if body.get("error"):
            raise PersistenceError(str(body["error"]))
        if response.is_error:
            raise PersistenceError(f"HTTP {response.status_code}")
        return body.get("result")

    async def version(self):
        """AnkiConnect's protocol version, used as a reachability check."""
        return await self.invoke("version")

    async def add_note(self, card: Card, deck_name: str, model_name: str):
        note = {
            "deckName": deck_name,
            "modelName": model_name,
            "fields": note_fields(card),
            "tags": card.tags,
        }
        return await self.invoke("addNote", {"note": note})

    async def sync(self) -> None:
        try:
            await self.invoke("sync")
        except PersistenceError as e:
            raise SyncWarning(f"AnkiWeb sync failed: {e}") from e

    async def persist(self, cards: Card | list[Card], deck_name: str, model_name: str) -> list:
        """Add each card in order, then sync.

        The first failing note aborts the rest. Notes added before it are kept,
        so the caller has to look in Anki to reconcile.
        """
        if isinstance(cards, Card):
            cards = [cards]

        note_ids = []
        for i, card in enumerate(cards):
            try:
                note_ids.append(await self.add_note(card, deck_name, model_name))
            except PersistenceError as e:
                if i:
                    raise PersistenceError(f"{e} ({i} of {len(cards)} cards were already added)") from e
                raise
            logger.info(f"Added note to '{deck_name}': {card.front!r}")

        try:
            await self.sync()
        except SyncWarning as e:
            logger.warning(str(e))

        return note_ids
