import logging
import sys

FMT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        stream=sys.stderr, level=getattr(logging, level.upper(), logging.INFO), format=FMT
    )


def diag(logger, level: int, msg: str, *args) -> None:
    """Log a best-effort diagnostic; a failing logger or filter never reaches the caller."""
    try:
        logger.log(level, msg, *args)
    except Exception:
        pass
