"""
AnkiConnect client and card importer.

Cards go to a fixed deck using the built-in "Basic" note type. Before each
create, the deck is searched for a note with the same front so that re-runs
never duplicate cards.
"""

import html
import logging
from typing import Any

import httpx

from notion_anki.exceptions import AnkiConnectError, CardImportError
from notion_anki.schemas import FlashcardCandidate, ImportStatus

logger = logging.getLogger(__name__)

ANKI_CONNECT_VERSION = 6
DECK_NAME = "Notion Import"
MODEL_NAME = "Basic"
FRONT_FIELD = "Front"
BACK_FIELD = "Back"


class AnkiConnectClient:
    """Client for the AnkiConnect add-on's JSON protocol."""

    def __init__(
        self,
        url: str = "http://localhost:8765",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url = url
        self.client = httpx.Client(timeout=timeout, transport=transport)

    def close(self) -> None:
        self.client.close()

    def invoke(self, action: str, **params) -> Any:
        """
        Call an AnkiConnect action.

        Args:
            action: Action name, e.g. "addNote"
            **params: Action parameters

        Returns:
            The ``result`` member of the response

        Raises:
            AnkiConnectError: If AnkiConnect reports an error
            httpx.HTTPError: On transport failure
        """
        payload = {"action": action, "version": ANKI_CONNECT_VERSION, "params": params}
        response = self.client.post(self.url, json=payload)
        logger.debug("AnkiConnect %s -> %s", action, response.status_code)
        response.raise_for_status()
        data = response.json()

        if data.get("error"):
            raise AnkiConnectError(action, str(data["error"]))
        return data.get("result")

    def find_notes(self, query: str) -> list[int]:
        return self.invoke("findNotes", query=query) or []

    def create_deck(self, name: str) -> int:
        return self.invoke("createDeck", deck=name)

    def add_note(self, deck: str, model: str, fields: dict[str, str]) -> int:
        note = {
            "deckName": deck,
            "modelName": model,
            "fields": fields,
            "options": {"allowDuplicate": False, "duplicateScope": "deck"},
        }
        return self.invoke("addNote", note=note)


def render_field(text: str) -> str:
    """Render plain text as Anki field HTML, newlines become <br>."""
    return html.escape(text, quote=False).replace("\n", "<br>")


def escape_search(text: str) -> str:
    """Escape text for use inside a quoted Anki search term."""
    for char in ("\\", '"', "*", "_"):
        text = text.replace(char, "\\" + char)
    return text


def duplicate_query(deck: str, front: str) -> str:
    return f'deck:"{escape_search(deck)}" "{FRONT_FIELD}:{escape_search(front)}"'


class CardImporter:
    """Imports candidates into the fixed deck, skipping ones already present."""

    def __init__(self, client: AnkiConnectClient):
        self.client = client

    def ensure_deck(self) -> None:
        """
        Create the target deck if it does not exist.

        Raises:
            CardImportError: If AnkiConnect is unreachable or rejects the call
        """
        try:
            self.client.create_deck(DECK_NAME)
        except (AnkiConnectError, httpx.HTTPError, ValueError) as e:
            raise CardImportError(f"Could not prepare deck {DECK_NAME!r}: {e!s}") from e

    def import_candidate(self, candidate: FlashcardCandidate) -> ImportStatus:
        """
        Import one candidate.

        Args:
            candidate: The extracted question/answer pair

        Returns:
            ImportStatus.CREATED, or ImportStatus.SKIPPED if the card exists

        Raises:
            CardImportError: On transport failure or an AnkiConnect error
        """
        front = render_field(candidate.question)
        back = render_field(candidate.answer)

        try:
            if self.client.find_notes(duplicate_query(DECK_NAME, front)):
                logger.info("Skipped existing card: %s", candidate.question)
                return ImportStatus.SKIPPED

            self.client.add_note(DECK_NAME, MODEL_NAME, {FRONT_FIELD: front, BACK_FIELD: back})
        except AnkiConnectError as e:
            if e.is_duplicate:
                logger.info("Skipped duplicate card: %s", candidate.question)
                return ImportStatus.SKIPPED
            raise CardImportError(
                f"Failed to add card from {candidate.source_document_id}: {e!s}",
                candidate=candidate,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise CardImportError(
                f"Failed to add card from {candidate.source_document_id}: {e!s}",
                candidate=candidate,
            ) from e

        logger.info("Added card: %s", candidate.question)
        return ImportStatus.CREATED
