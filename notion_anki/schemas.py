"""
Pydantic schemas for documents, extracted flashcards and import results.
"""

from collections.abc import Iterator
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from notion_anki.exceptions import FetchError


# Document schemas
class Block(BaseModel):
    """One paragraph-equivalent unit of a document, made of plain-text runs."""

    runs: list[str] = Field(default_factory=list, description="Plain text of each rich-text fragment")

    @property
    def text(self) -> str:
        """The runs joined into one logical line."""
        return "".join(self.runs)


class Document(BaseModel):
    """A fetched page: identifier plus its blocks in document order."""

    id: str
    title: str | None = None
    blocks: list[Block] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def lines(self) -> Iterator[str]:
        """Yield one line of text per block."""
        for block in self.blocks:
            yield block.text


class FetchResult(BaseModel):
    """Documents fetched in one run plus the per-document failures."""

    documents: list[Document] = Field(default_factory=list)
    errors: list[FetchError] = Field(default_factory=list)

    model_config = ConfigDict(arbitrary_types_allowed=True)


# Flashcard schemas
class FlashcardCandidate(BaseModel):
    """An extracted, not yet imported question/answer pair."""

    question: str = Field(..., min_length=1, description="The question text")
    answer: str = Field(..., min_length=1, description="The answer text")
    source_document_id: str = ""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)


# Import schemas
class ImportStatus(Enum):
    """Outcome of importing one candidate."""

    CREATED = "created"
    SKIPPED = "skipped"


class FailedImport(BaseModel):
    """A candidate that could not be imported, with the reason."""

    candidate: FlashcardCandidate
    reason: str


class ImportResult(BaseModel):
    """Aggregate counts for a run."""

    created: int = 0
    skipped: int = 0
    failed: list[FailedImport] = Field(default_factory=list)

    def record(self, status: ImportStatus) -> None:
        if status is ImportStatus.CREATED:
            self.created += 1
        else:
            self.skipped += 1

    def record_failure(self, candidate: FlashcardCandidate, reason: str) -> None:
        self.failed.append(FailedImport(candidate=candidate, reason=reason))


class SyncReport(BaseModel):
    """Summary of a full fetch, extract and import run."""

    result: ImportResult = Field(default_factory=ImportResult)
    documents_processed: int = 0
    fetch_errors: list[FetchError] = Field(default_factory=list)
    listing_failed: bool = False

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def ok(self) -> bool:
        """True when every document was fetched and no import failed."""
        return not self.listing_failed and not self.fetch_errors and not self.result.failed

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1
