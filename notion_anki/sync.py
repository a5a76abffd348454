"""
Sync orchestration: fetch pages, extract flashcards, import them into Anki.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from notion_anki.anki import CardImporter, render_field
from notion_anki.exceptions import CardImportError, FetchError
from notion_anki.notion import DocumentFetcher
from notion_anki.parser import extract_document_flashcards
from notion_anki.schemas import FlashcardCandidate, ImportResult, ImportStatus, SyncReport

logger = logging.getLogger(__name__)


def _import_one(importer: CardImporter, candidate: FlashcardCandidate, result: ImportResult) -> None:
    try:
        status = importer.import_candidate(candidate)
    except CardImportError as e:
        logger.error("%s", e)
        result.record_failure(candidate, str(e))
        return
    result.record(status)


def _import_group(
    importer: CardImporter, group: list[FlashcardCandidate]
) -> list[ImportStatus | CardImportError]:
    """Import candidates sharing one front, strictly in order."""
    outcomes: list[ImportStatus | CardImportError] = []
    for candidate in group:
        try:
            outcomes.append(importer.import_candidate(candidate))
        except CardImportError as e:
            outcomes.append(e)
    return outcomes


def import_candidates(
    importer: CardImporter,
    candidates: list[FlashcardCandidate],
    result: ImportResult,
    max_workers: int = 1,
) -> None:
    """
    Import candidates into Anki, recording each outcome in result.

    With max_workers > 1 candidates are grouped by rendered front and each
    group runs as one thread pool task, so the duplicate check and create for
    a question never race and the first pair in document order wins, as in
    the sequential path. Outcomes are recorded in candidate order.
    """
    if max_workers <= 1 or len(candidates) < 2:
        for candidate in candidates:
            _import_one(importer, candidate, result)
        return

    groups: dict[str, list[int]] = {}
    for index, candidate in enumerate(candidates):
        groups.setdefault(render_field(candidate.question), []).append(index)

    outcomes: dict[int, ImportStatus | CardImportError] = {}
    with ThreadPoolExecutor(max_workers=max_workers) as ex:
        futures = {
            ex.submit(_import_group, importer, [candidates[i] for i in indexes]): indexes
            for indexes in groups.values()
        }
        for fut, indexes in futures.items():
            outcomes.update(zip(indexes, fut.result()))

    for index, candidate in enumerate(candidates):
        outcome = outcomes[index]
        if isinstance(outcome, CardImportError):
            logger.error("%s", outcome)
            result.record_failure(candidate, str(outcome))
        else:
            result.record(outcome)


def run_sync(
    fetcher: DocumentFetcher,
    importer: CardImporter,
    max_workers: int = 1,
) -> SyncReport:
    """
    Run one full sync.

    Args:
        fetcher: Source of Notion documents
        importer: Anki card importer
        max_workers: Concurrent import requests per document

    Returns:
        SyncReport with counts, failures and the exit status
    """
    report = SyncReport()

    try:
        fetched = fetcher.fetch()
    except FetchError as e:
        logger.error("%s", e)
        report.listing_failed = True
        return report
    report.fetch_errors.extend(fetched.errors)

    if not fetched.documents:
        return report

    try:
        importer.ensure_deck()
    except CardImportError as e:
        logger.error("%s", e)
        for document in fetched.documents:
            for candidate in extract_document_flashcards(document):
                report.result.record_failure(candidate, str(e))
        report.documents_processed = len(fetched.documents)
        return report

    for document in fetched.documents:
        candidates = list(extract_document_flashcards(document))
        logger.info(
            "Page %s: %d flashcard(s) found",
            document.title or document.id,
            len(candidates),
        )
        import_candidates(importer, candidates, report.result, max_workers=max_workers)
        report.documents_processed += 1

    return report


def log_summary(report: SyncReport) -> None:
    """Log the created/skipped/failed counts of a run."""
    result = report.result
    logger.info(
        "Sync finished: %d created, %d skipped, %d failed, %d page(s) not fetched",
        result.created,
        result.skipped,
        len(result.failed),
        len(report.fetch_errors),
    )
    for failed in result.failed:
        logger.info("  failed: %s (%s)", failed.candidate.question, failed.reason)
