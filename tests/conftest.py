"""
Shared pytest fixtures: in-memory fakes for the Notion API and AnkiConnect,
served through httpx.MockTransport.
"""

import itertools
import json

import httpx
import pytest

from notion_anki.anki import AnkiConnectClient, CardImporter, duplicate_query
from notion_anki.notion import DocumentFetcher, NotionClient

_ids = itertools.count(1)


def text_block(text: str | list[str], block_type: str = "paragraph", children=None) -> dict:
    """Build a Notion block; a list of strings becomes several rich-text runs."""
    runs = [text] if isinstance(text, str) else text
    block = {
        "object": "block",
        "id": f"block-{next(_ids)}",
        "type": block_type,
        block_type: {"rich_text": [{"type": "text", "plain_text": run} for run in runs]},
        "has_children": bool(children),
    }
    if children:
        block["_children"] = children
    return block


def page(page_id: str, title: str | None = None) -> dict:
    """Build a Notion page object with an optional title property."""
    properties = {"Status": {"type": "select", "select": {"name": "Ready to Import"}}}
    if title is not None:
        properties["Name"] = {"type": "title", "title": [{"plain_text": title}]}
    return {"object": "page", "id": page_id, "properties": properties}


class FakeNotion:
    """Serves pages and block trees the way the Notion API does."""

    def __init__(self, page_size: int = 100):
        self.pages: list[dict] = []
        self.blocks: dict[str, list[dict]] = {}
        self.failing: set[str] = set()
        self.fail_listing = False
        self.page_size = page_size
        self.requests: list[httpx.Request] = []

    def add_page(self, page_id: str, blocks: list[dict], title: str | None = None) -> None:
        self.pages.append(page(page_id, title))
        self._register(page_id, blocks)

    def _register(self, parent_id: str, blocks: list[dict]) -> None:
        self.blocks[parent_id] = blocks
        for block in blocks:
            if block.get("_children"):
                self._register(block["id"], block["_children"])

    def _paged(self, items: list, cursor: str | None) -> dict:
        start = int(cursor) if cursor else 0
        chunk = items[start:start + self.page_size]
        more = start + self.page_size < len(items)
        return {
            "object": "list",
            "results": [{k: v for k, v in item.items() if k != "_children"} for item in chunk],
            "has_more": more,
            "next_cursor": str(start + self.page_size) if more else None,
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.method == "POST":
            if self.fail_listing:
                return httpx.Response(401, json={"object": "error", "code": "unauthorized"})
            body = json.loads(request.content or b"{}")
            return httpx.Response(200, json=self._paged(self.pages, body.get("start_cursor")))

        block_id = path.split("/")[-2]
        if block_id in self.failing:
            return httpx.Response(500, json={"object": "error", "code": "internal_server_error"})
        if block_id not in self.blocks:
            return httpx.Response(404, json={"object": "error", "code": "object_not_found"})
        return httpx.Response(
            200, json=self._paged(self.blocks[block_id], request.url.params.get("start_cursor"))
        )


class FakeAnki:
    """Minimal AnkiConnect: decks, findNotes by front and addNote."""

    def __init__(self):
        self.notes: list[dict] = []
        self.decks: set[str] = {"Default"}
        self.actions: list[str] = []
        self.unreachable = False
        self.errors: dict[str, str] = {}

    def fronts(self) -> list[str]:
        return [note["fields"]["Front"] for note in self.notes]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.unreachable:
            raise httpx.ConnectError("Connection refused", request=request)

        body = json.loads(request.content)
        action, params = body["action"], body["params"]
        self.actions.append(action)
        assert body["version"] == 6

        if action in self.errors:
            return httpx.Response(200, json={"result": None, "error": self.errors[action]})
        if action == "createDeck":
            self.decks.add(params["deck"])
            return httpx.Response(200, json={"result": 1, "error": None})
        if action == "findNotes":
            found = [
                i + 1
                for i, note in enumerate(self.notes)
                if duplicate_query(note["deckName"], note["fields"]["Front"]) == params["query"]
            ]
            return httpx.Response(200, json={"result": found, "error": None})
        if action == "addNote":
            note = params["note"]
            if note["deckName"] not in self.decks:
                return httpx.Response(200, json={"result": None, "error": "deck was not found"})
            for existing in self.notes:
                if existing["fields"]["Front"] == note["fields"]["Front"]:
                    return httpx.Response(
                        200,
                        json={"result": None, "error": "cannot create note because it is a duplicate"},
                    )
            self.notes.append(note)
            return httpx.Response(200, json={"result": len(self.notes), "error": None})
        return httpx.Response(200, json={"result": None, "error": "unsupported action"})


@pytest.fixture
def fake_notion():
    return FakeNotion()


@pytest.fixture
def fake_anki():
    return FakeAnki()


@pytest.fixture
def notion_client(fake_notion):
    client = NotionClient("secret_test", transport=httpx.MockTransport(fake_notion))
    yield client
    client.close()


@pytest.fixture
def anki_client(fake_anki):
    client = AnkiConnectClient(transport=httpx.MockTransport(fake_anki))
    yield client
    client.close()


@pytest.fixture
def fetcher(notion_client):
    return DocumentFetcher(notion_client)


@pytest.fixture
def importer(anki_client):
    return CardImporter(anki_client)
