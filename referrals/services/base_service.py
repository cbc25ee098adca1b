"""
Base service class.

Session handling, bound logging and the transaction decorator shared by
the referral services.
"""

import functools
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from referrals.utils.exceptions import ReferralError


T = TypeVar("T")


class BaseService:
    """
    Base service class.

    Services are stateless apart from the session they are built on; every
    public write is one commit.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
        """
        self.session = session
        self.logger = logger.bind(service=self.__class__.__name__)


def transaction(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """
    Run a service method as one transaction.

    Commits when the method returns and rolls back when it raises. The
    reads that gate a decision and the writes that record it therefore
    land in the same commit.

    Domain errors (ReferralError) are expected outcomes and logged at info
    level; anything else is logged with its traceback. Both are re-raised.

    Usage:
        @transaction
        async def emit_rewards(self, referral_id: int) -> list[Reward]:
            ...
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> T:
        try:
            result = await func(self, *args, **kwargs)
        except ReferralError as e:
            await self.session.rollback()
            self.logger.info(
                f"{func.__name__} rejected: {e.code}: {e.message}",
                extra={"function": func.__name__, "error_code": e.code},
            )
            raise
        except Exception as e:
            await self.session.rollback()
            self.logger.opt(exception=True).error(
                f"Transaction failed in {func.__name__}",
                extra={"function": func.__name__, "error": str(e)},
            )
            raise

        await self.session.commit()
        return result

    return wrapper
