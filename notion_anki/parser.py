"""
Flashcard extractor for Notion page text.

Expected format (one line per Notion block):
问题: What is the difference between @staticmethod and @classmethod in Python?
答案:
@staticmethod doesn't receive any implicit first argument.
@classmethod receives the class as implicit first argument (cls).

Both colon glyphs (":" and "："), the English labels "Question:"/"Answer:" and
the alternative answer label "回答:" are accepted. Answers may start on the
marker line or on any following block and run until the next question.
"""
import logging
from collections.abc import Iterable, Iterator
from enum import Enum

from notion_anki.schemas import Document, FlashcardCandidate

logger = logging.getLogger(__name__)


class Role(Enum):
    """What a marker line opens."""

    QUESTION = "question"
    ANSWER = "answer"


class State(Enum):
    """States of the per-document extraction machine."""

    IDLE = "idle"
    COLLECTING_QUESTION = "collecting_question"
    COLLECTING_ANSWER = "collecting_answer"


# Ordered: question markers are tested first, so a line has at most one role.
MARKERS: tuple[tuple[str, Role], ...] = (
    ("问题:", Role.QUESTION),
    ("问题：", Role.QUESTION),
    ("Question:", Role.QUESTION),
    ("答案:", Role.ANSWER),
    ("答案：", Role.ANSWER),
    ("回答:", Role.ANSWER),
    ("Answer:", Role.ANSWER),
)

LINE_JOINER = "\n"


def classify_line(line: str) -> tuple[Role | None, str]:
    """
    Match a line against the marker table.

    Args:
        line: One block of text

    Returns:
        Tuple of (role, remainder). Role is None for ordinary lines, in which
        case remainder is the line itself.
    """
    stripped = line.lstrip()
    for prefix, role in MARKERS:
        if stripped[:len(prefix)].casefold() == prefix.casefold():
            return role, stripped[len(prefix):].strip()
    return None, line


def _finalize(parts: list[str]) -> str:
    return LINE_JOINER.join(part for part in parts if part.strip()).strip()


class FlashcardStateMachine:
    """
    Line-by-line question/answer collector for a single document.

    Create one instance per document. ``feed`` returns the candidate completed
    by that line, if any; ``finish`` flushes the pending pair at end of input.
    """

    def __init__(self, source_document_id: str = ""):
        self.source_document_id = source_document_id
        self.state = State.IDLE
        self.question: list[str] = []
        self.answer: list[str] = []

    def feed(self, line: str) -> FlashcardCandidate | None:
        role, remainder = classify_line(line)
        emitted = None

        if role is Role.QUESTION:
            if self.state is State.COLLECTING_ANSWER:
                emitted = self._emit()
            elif self.state is State.COLLECTING_QUESTION:
                logger.debug(
                    "Dropping unanswered question in %s: %r",
                    self.source_document_id,
                    _finalize(self.question),
                )
            self._start_question(remainder)
            return emitted

        if role is Role.ANSWER and self.state is State.COLLECTING_QUESTION:
            self.state = State.COLLECTING_ANSWER
            self.answer = [remainder]
            return None

        if self.state is State.IDLE or not line.strip():
            return None

        if self.state is State.COLLECTING_QUESTION:
            self.question.append(line.rstrip())
        else:
            # includes a repeated answer marker, kept verbatim
            self.answer.append(line.rstrip())
        return None

    def finish(self) -> FlashcardCandidate | None:
        """Flush the pending pair at end of document."""
        emitted = self._emit() if self.state is State.COLLECTING_ANSWER else None
        self._reset()
        return emitted

    def _start_question(self, remainder: str) -> None:
        self.state = State.COLLECTING_QUESTION
        self.question = [remainder]
        self.answer = []

    def _reset(self) -> None:
        self.state = State.IDLE
        self.question = []
        self.answer = []

    def _emit(self) -> FlashcardCandidate | None:
        question = _finalize(self.question)
        answer = _finalize(self.answer)
        if not question or not answer:
            logger.debug(
                "Discarding incomplete card in %s: question=%r answer=%r",
                self.source_document_id,
                question,
                answer,
            )
            return None
        return FlashcardCandidate(
            question=question,
            answer=answer,
            source_document_id=self.source_document_id,
        )


def extract_flashcards(
    lines: Iterable[str], source_document_id: str = ""
) -> Iterator[FlashcardCandidate]:
    """
    Lazily extract flashcards from a document's lines.

    Args:
        lines: One string per block, in document order
        source_document_id: Id attached to every candidate

    Yields:
        FlashcardCandidate in document order
    """
    machine = FlashcardStateMachine(source_document_id)
    for line in lines:
        candidate = machine.feed(line)
        if candidate is not None:
            yield candidate
    candidate = machine.finish()
    if candidate is not None:
        yield candidate


def extract_document_flashcards(document: Document) -> Iterator[FlashcardCandidate]:
    """Extract flashcards from a fetched Notion document."""
    return extract_flashcards(document.lines(), document.id)


def parse_flashcard_content(
    content: str, source_document_id: str = ""
) -> list[FlashcardCandidate]:
    """
    Parse a plain-text blob containing flashcards.

    Args:
        content: Text with one block per line

    Returns:
        List of extracted candidates
    """
    return list(extract_flashcards(content.splitlines(), source_document_id))
