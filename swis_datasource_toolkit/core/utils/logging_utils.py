import functools
import logging
import time

logger = logging.getLogger(__name__)


def log_function_call(func):
    """Log entry, exit and duration of the wrapped call at debug level; failures are logged and re-raised."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        name = func.__qualname__
        logger.debug(f"Entering {name}")
        start = time.monotonic()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.debug(f"{name} raised {type(e).__name__} after {time.monotonic() - start:.3f}s: {e}")
            raise
        logger.debug(f"Exiting {name} after {time.monotonic() - start:.3f}s")
        return result

    return wrapper
