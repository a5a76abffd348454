"""
Command line entry point: sync flashcards from Notion pages into Anki.

Usage:
    notion-anki

Configuration comes from the environment or a .env file (see config.Settings).
Exit status is 0 on a clean run, 1 if any page or card failed, 2 on a
configuration error.
"""

import logging
import sys

from notion_anki.anki import AnkiConnectClient, CardImporter
from notion_anki.config import Settings, load_settings
from notion_anki.exceptions import ConfigError
from notion_anki.logging_config import configure_logging
from notion_anki.notion import DocumentFetcher, NotionClient
from notion_anki.schemas import SyncReport
from notion_anki.sync import log_summary, run_sync

logger = logging.getLogger(__name__)

EXIT_CONFIG_ERROR = 2


def sync_from_settings(settings: Settings) -> SyncReport:
    """Build the Notion and AnkiConnect clients and run one sync."""
    notion_client = NotionClient(settings.source_api_key, timeout=settings.request_timeout)
    anki_client = AnkiConnectClient(settings.destination_api_url, timeout=settings.request_timeout)
    try:
        fetcher = DocumentFetcher(
            notion_client,
            database_id=settings.source_database_id,
            status_property=settings.status_property,
            status_value=settings.status_value,
        )
        importer = CardImporter(anki_client)
        return run_sync(fetcher, importer, max_workers=settings.import_workers)
    finally:
        notion_client.close()
        anki_client.close()


def main() -> int:
    try:
        settings = load_settings()
    except ConfigError as e:
        configure_logging()
        logger.error("%s", e)
        return EXIT_CONFIG_ERROR

    configure_logging(debug=settings.debug_mode, log_file=settings.log_file)
    if settings.debug_mode:
        logger.info("Debug trace enabled: %s", settings.log_file)

    report = sync_from_settings(settings)
    log_summary(report)
    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
