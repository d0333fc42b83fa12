"""
Logging utilities for internal use.
Usage:
    from chaintrace.internal.logger import get_logger
    log = get_logger(__name__)

    log.debug("closed span for run %s", run_id)

Every logger returned by ``get_logger`` is rate limited: a given call site (pathname/lineno) emits at
most one record every ``CHAINTRACE_LOGGING_RATE`` seconds (60 by default). The number of records
skipped in between is appended to the next emitted record. Loggers at DEBUG level are never rate
limited, and ``CHAINTRACE_LOGGING_RATE=0`` disables rate limiting altogether.
"""

import collections
import logging
import time
from typing import DefaultDict
from typing import Tuple

from chaintrace.settings import config


def get_logger(name: str) -> logging.Logger:
    """
    Retrieve or create a ``Logger`` instance with consistent behavior for internal use.

    Configure all loggers with a rate limiter filter to prevent excessive logging.
    """
    logger = logging.getLogger(name)
    # addFilter will only add the filter if it is not already present
    logger.addFilter(log_filter)
    logger.propagate = True
    return logger


# Keeps track of a log line's current time bucket and the number of log lines skipped
class LoggingBucket:
    def __init__(self, bucket: float, skipped: int):
        self.bucket = bucket
        self.skipped = skipped

    def __repr__(self):
        return f"LoggingBucket({self.bucket}, {self.skipped})"

    def is_sampled(self, record: logging.LogRecord, rate: float) -> bool:
        current = time.monotonic()
        if current - self.bucket >= rate:
            self.bucket = current
            record.skipped = self.skipped
            self.skipped = 0
            return True
        self.skipped += 1
        return False


_MINF = float("-inf")

_buckets: DefaultDict[Tuple[str, int], LoggingBucket] = collections.defaultdict(lambda: LoggingBucket(_MINF, 0))


def log_filter(record: logging.LogRecord) -> bool:
    """
    Determine if a log record should be outputted or not (True = output, False = skip).
    """
    logger = logging.getLogger(record.name)
    rate = config.logging_rate
    if not rate or logger.getEffectiveLevel() == logging.DEBUG:
        return True
    return _buckets[(record.pathname, record.lineno)].is_sampled(record, rate)


class ChainTraceFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        skipped = getattr(record, "skipped", 0)
        skip_str = f" [{skipped} skipped]" if skipped else ""
        return f"{record.levelname} {super().format(record)}{skip_str}"


# setup the default formatter for all chaintrace loggers
root_logger = logging.getLogger("chaintrace")
root_logger.addHandler(logging.StreamHandler())
root_logger.handlers[0].setFormatter(ChainTraceFormatter())
root_logger.propagate = True
