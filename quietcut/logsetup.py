import logging
import sys
from pathlib import Path


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> logging.Logger:
    """Configure the ``quietcut`` logger.

    Console output goes to stderr at INFO (DEBUG when ``verbose``). When
    ``log_file`` is given, everything from DEBUG up is written there too.
    """
    logger = logging.getLogger("quietcut")
    logger.setLevel(logging.DEBUG)

    # Clear handlers so repeated calls don't duplicate output
    if logger.hasHandlers():
        logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(file_handler)
        logger.debug("Logging to %s", log_file)

    return logger
