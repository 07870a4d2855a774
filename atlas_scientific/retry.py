import logging

import backoff

logger = logging.getLogger(__name__)


def _retry_handler(details):
    logger.warning(
        f"Retrying after {details['wait']:.3f}s wait. Call details: {details}"
    )


def retry_on_exception(expected_exception, **backoff_kwargs):
    """ When used as a decorator, when the wrapped function raises expected_exception, we'll retry
    By default we retry exactly once, after a constant wait with no jitter: probes report "still
    processing" when read too early, and one more settle-time wait is all they are given.

    After the final try, the error will be raised.

    Example usage:
    >>> @retry_on_exception(ExpectedError, interval=0.3)
    >>> def thing_that_might_raise_expected_error(foo): ...

    Args:
        expected_exception: exception or tuple of exceptions to handle via retry
        **backoff_kwargs: Additional keyword arguments will be passed to `backoff.on_exception`.

    Returns:
        decorator which can be used to wrap a function
    """
    return backoff.on_exception(
        backoff.constant,  # Use a constant interval between retries rather than, say, an exponential backoff
        expected_exception,
        **{
            "jitter": None,
            "interval": 0.3,
            "max_tries": 2,
            "on_backoff": _retry_handler,
            **backoff_kwargs,
        },
    )
