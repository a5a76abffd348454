"""
Notion API client and document fetcher.

Pages are selected either by a database status filter or, without a database
id, by every page shared with the integration. Each page's block tree is
flattened into one Block per rich-text block for the extractor.
"""

import logging
from collections.abc import Iterator
from typing import Any

import httpx

from notion_anki.exceptions import FetchError
from notion_anki.schemas import Block, Document, FetchResult

logger = logging.getLogger(__name__)

NOTION_API_BASE = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"
PAGE_SIZE = 100

# Block types whose payload carries a rich_text array
TEXT_BLOCK_TYPES = {
    "paragraph",
    "heading_1",
    "heading_2",
    "heading_3",
    "bulleted_list_item",
    "numbered_list_item",
    "to_do",
    "toggle",
    "quote",
    "callout",
    "code",
}

# Separate pages; never flattened into their parent
CHILD_DOCUMENT_TYPES = {"child_page", "child_database"}


class NotionClient:
    """Thin wrapper over the Notion REST endpoints used by the sync."""

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        base_url: str = NOTION_API_BASE,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key
        self.client = httpx.Client(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Notion-Version": NOTION_VERSION,
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def _paginate(self, method: str, url: str, body: dict[str, Any] | None = None) -> Iterator[dict]:
        """Yield every result across next_cursor pages."""
        cursor = None
        while True:
            if method == "GET":
                params = {"page_size": PAGE_SIZE}
                if cursor:
                    params["start_cursor"] = cursor
                response = self.client.get(url, params=params)
            else:
                payload = dict(body or {}, page_size=PAGE_SIZE)
                if cursor:
                    payload["start_cursor"] = cursor
                response = self.client.post(url, json=payload)
            logger.debug("%s %s -> %s", method, url, response.status_code)
            response.raise_for_status()
            data = response.json()

            yield from data.get("results", [])

            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                return

    def query_database(
        self,
        database_id: str,
        status_property: str = "Status",
        status_value: str = "Ready to Import",
    ) -> list[dict]:
        """Return database pages whose status select equals status_value."""
        body = {
            "filter": {
                "property": status_property,
                "select": {"equals": status_value},
            }
        }
        return list(self._paginate("POST", f"/databases/{database_id}/query", body))

    def search_pages(self) -> list[dict]:
        """Return every page shared with the integration."""
        body = {"filter": {"property": "object", "value": "page"}}
        return list(self._paginate("POST", "/search", body))

    def list_block_children(self, block_id: str) -> list[dict]:
        """Return the direct children of a block or page."""
        return list(self._paginate("GET", f"/blocks/{block_id}/children"))


def rich_text_runs(block: dict) -> list[str] | None:
    """
    Get the plain-text runs of a block.

    Returns:
        List of plain_text strings, or None if the block type has no rich text
    """
    block_type = block.get("type")
    if block_type not in TEXT_BLOCK_TYPES:
        return None
    payload = block.get(block_type) or {}
    return [fragment.get("plain_text", "") for fragment in payload.get("rich_text", [])]


def page_title(page: dict) -> str | None:
    """Read the title property of a page, if it has one."""
    for prop in (page.get("properties") or {}).values():
        if prop.get("type") == "title":
            text = "".join(t.get("plain_text", "") for t in prop.get("title", []))
            return text or None
    return None


class DocumentFetcher:
    """Resolves in-scope pages and maps them to Documents."""

    def __init__(
        self,
        client: NotionClient,
        database_id: str | None = None,
        status_property: str = "Status",
        status_value: str = "Ready to Import",
    ):
        self.client = client
        self.database_id = database_id
        self.status_property = status_property
        self.status_value = status_value

    def list_pages(self) -> list[dict]:
        """
        List pages in scope for this run.

        Raises:
            FetchError: If the listing request fails
        """
        try:
            if self.database_id:
                pages = self.client.query_database(
                    self.database_id, self.status_property, self.status_value
                )
            else:
                pages = self.client.search_pages()
        except (httpx.HTTPError, ValueError) as e:
            raise FetchError(f"Could not list Notion pages: {e!s}") from e

        mode = "database query" if self.database_id else "accessible pages"
        logger.info("Found %d page(s) to import (%s)", len(pages), mode)
        return pages

    def fetch_document(self, page: dict) -> Document:
        """
        Fetch one page's blocks.

        Raises:
            FetchError: If any block request for this page fails
        """
        page_id = page["id"]
        try:
            blocks = list(self._walk_blocks(page_id))
        except (httpx.HTTPError, ValueError) as e:
            raise FetchError(f"Could not fetch page {page_id}: {e!s}", document_id=page_id) from e
        return Document(id=page_id, title=page_title(page), blocks=blocks)

    def _walk_blocks(self, block_id: str) -> Iterator[Block]:
        for child in self.client.list_block_children(block_id):
            if child.get("type") in CHILD_DOCUMENT_TYPES:
                continue
            runs = rich_text_runs(child)
            if runs is not None:
                yield Block(runs=runs)
            if child.get("has_children"):
                yield from self._walk_blocks(child["id"])

    def fetch(self) -> FetchResult:
        """
        Fetch every in-scope document.

        A failing page is logged and recorded; the remaining pages continue.

        Raises:
            FetchError: If the page listing itself fails
        """
        result = FetchResult()
        for page in self.list_pages():
            try:
                document = self.fetch_document(page)
            except FetchError as e:
                logger.error("Skipping page %s: %s", e.document_id, e)
                result.errors.append(e)
                continue
            logger.debug("Fetched page %s with %d block(s)", document.id, len(document.blocks))
            result.documents.append(document)
        return result
