"""
Logging setup for the command line entry point.

Console output is INFO level. With DEBUG_MODE on, a DEBUG trace of every
request and parser decision is also written to the log file.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(debug: bool = False, log_file: str | None = None) -> None:
    """
    Configure the root logger once.

    Args:
        debug: Enable the DEBUG file trace
        log_file: Path of the trace file, used only when debug is on
    """
    root = logging.getLogger()
    if root.handlers:
        return

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    root.addHandler(console)
    root.setLevel(logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if debug and log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)
        root.setLevel(logging.DEBUG)
        # Keep transport internals out of the trace
        logging.getLogger("httpcore").setLevel(logging.INFO)
