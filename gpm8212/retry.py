import logging
import traceback

import backoff

logger = logging.getLogger(__name__)


def _log_retry(details):
    logger.info(
        f"Retrying {details['target'].__name__} after error (try #{details['tries']}). "
        f"Traceback: {traceback.format_exc()}"
    )


def retry_on_exception(expected_exception, **backoff_kwargs):
    """ Decorator which retries the wrapped function when it raises expected_exception

    The GPM-8212 driver never retries on its own; this is for callers that want to ride out a flaky
    serial link. By default we try 3 times at a short constant interval with jitter, logging the
    traceback of each failure. After the last try, the error is raised.

    Example usage:
    >>> @retry_on_exception(TransportError)
    >>> def take_snapshot(meter): ...

    Args:
        expected_exception: exception or tuple of exceptions to handle via retry
        **backoff_kwargs: Additional keyword arguments will be passed to `backoff.on_exception`.

    Returns:
        decorator which can be used to wrap a function
    """
    return backoff.on_exception(
        backoff.constant,
        expected_exception,
        **{
            "jitter": backoff.full_jitter,
            "interval": 0.2,
            "max_tries": 3,
            "on_backoff": _log_retry,
            **backoff_kwargs,
        },
    )
