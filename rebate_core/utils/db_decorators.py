"""
Database decorators for automatic error handling and rollback.

Provides decorators that roll back the session when an async database
operation fails and translate driver errors into RebateStorageError.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rebate_core.utils.exceptions import RebateStorageError


T = TypeVar("T")


def _find_session(args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
    """Locate the session among kwargs, first positional arg or self.session."""
    session = kwargs.get('session')
    if session is None and args:
        if isinstance(args[0], AsyncSession):
            session = args[0]
        else:
            session = getattr(args[0], 'session', None)
    return session


def with_rollback_on_error(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that rolls back the session on any exception.

    Usage:
        class Engine:
            def __init__(self, session: AsyncSession):
                self.session = session

            @with_rollback_on_error
            async def apply(self, ...):
                ...

    The decorator will:
    1. Execute the wrapped function
    2. If an exception occurs, call session.rollback()
    3. Re-raise SQLAlchemyError as RebateStorageError, other errors as is

    Args:
        func: Async function or method to wrap. The session is taken from a
              'session' keyword argument, an AsyncSession first argument, or
              the 'session' attribute of the first argument.

    Returns:
        Wrapped function with automatic rollback on error
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = _find_session(args, kwargs)

        if session is None:
            logger.warning(
                f"Function {func.__name__} decorated with @with_rollback_on_error "
                f"but no session argument found. Rollback will not be performed."
            )
            return await func(*args, **kwargs)

        try:
            return await func(*args, **kwargs)
        except Exception as e:
            try:
                await session.rollback()
                logger.info(
                    f"Rollback performed in {func.__name__} due to error: {type(e).__name__}"
                )
            except Exception as rollback_error:
                logger.error(
                    f"Failed to rollback in {func.__name__}: {rollback_error}",
                    exc_info=True
                )
            if isinstance(e, SQLAlchemyError):
                logger.error(
                    f"Database error in {func.__name__}: {e}",
                    exc_info=True
                )
                raise RebateStorageError(
                    f"{func.__name__} failed: {type(e).__name__}"
                ) from e
            raise

    return wrapper
