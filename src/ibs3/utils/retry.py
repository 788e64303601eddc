"""
Retry handling for network operations.
"""
from typing import Callable, Tuple, Type, TypeVar

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

MAX_ATTEMPTS = 3
RETRYABLE_ERRORS: Tuple[Type[BaseException], ...] = (BotoCoreError, ClientError, OSError)

T = TypeVar('T')


class RetriesExhaustedError(RuntimeError):
    """
    An operation failed on every attempt. Terminates the run.
    """

    def __init__(self, description: str, attempts: int, error: BaseException):
        super().__init__(f'{description} failed after {attempts} attempts: {error}')
        self.description = description
        self.attempts = attempts
        self.error = error


def retry(operation: Callable[..., T], *args,
          max_attempts: int = MAX_ATTEMPTS,
          description: str = None,
          retry_on: Tuple[Type[BaseException], ...] = RETRYABLE_ERRORS,
          **kwargs) -> T:
    """
    Run operation and retry it right away if it fails.
    The first call counts as attempt 1. There is no delay between attempts.
    :param operation: callable to run
    :param args: positional args for operation
    :param max_attempts: total number of attempts
    :param description: name of the operation for log messages
    :param retry_on: exceptions which trigger a retry. Everything else is raised.
    :param kwargs: keyword args for operation
    :return: result of operation
    :raises RetriesExhaustedError: if the last attempt failed
    """
    if max_attempts < 1:
        raise ValueError('max_attempts must be at least 1')
    description = description or getattr(operation, '__name__', repr(operation))
    for attempt in range(1, max_attempts + 1):
        try:
            return operation(*args, **kwargs)
        except retry_on as e:
            if attempt == max_attempts:
                logger.error(f'{description} failed! Giving up after {attempt} attempts.')
                raise RetriesExhaustedError(description, attempt, e) from e
            logger.warning(f'{description} failed (attempt {attempt}/{max_attempts}): {e}. '
                           'Retrying...')
