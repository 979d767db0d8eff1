"""
Ownership Ledger — who holds which pass.

The registry only relies on the three calls in ``OwnershipLedger``
(bind, current holder, existence). ``SqlOwnershipLedger`` is the shipped
implementation, backed by the ``pass_ownership`` table, and also provides the
transfer and per-wallet enumeration used by the HTTP layer.
"""
import logging
from datetime import datetime
from typing import Optional, Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import PassOwnership

logger = logging.getLogger(__name__)


class OwnershipLedger(Protocol):
    """Outbound interface the registry calls for ownership questions."""

    async def bind_new_token(self, db: AsyncSession, token_id: int, holder: str) -> None: ...

    async def current_holder(self, db: AsyncSession, token_id: int) -> Optional[str]: ...

    async def exists(self, db: AsyncSession, token_id: int) -> bool: ...


class TokenAlreadyBoundError(Exception):
    """Raised when a token id is bound twice (one holder per token)."""
    pass


class SqlOwnershipLedger:
    """Database-backed ownership ledger."""

    async def bind_new_token(self, db: AsyncSession, token_id: int, holder: str) -> None:
        existing = await db.get(PassOwnership, token_id)
        if existing is not None:
            raise TokenAlreadyBoundError(f"Token {token_id} is already bound to a holder")

        db.add(PassOwnership(token_id=token_id, holder_wallet=holder, bound_at=datetime.utcnow()))
        await db.flush()
        logger.info(f"Ledger: bound token #{token_id} -> {holder[:8]}...")

    async def current_holder(self, db: AsyncSession, token_id: int) -> Optional[str]:
        row = await db.get(PassOwnership, token_id)
        return row.holder_wallet if row else None

    async def exists(self, db: AsyncSession, token_id: int) -> bool:
        return await self.current_holder(db, token_id) is not None

    async def transfer(self, db: AsyncSession, token_id: int, from_wallet: str, to_wallet: str) -> None:
        """
        Move a token to a new holder.

        The caller is responsible for checking that ``from_wallet`` is the
        current holder; this method only refuses an unknown token id.
        """
        row = await db.get(PassOwnership, token_id)
        if row is None or row.holder_wallet != from_wallet:
            raise LookupError(f"Token {token_id} is not held by {from_wallet[:8]}...")

        row.holder_wallet = to_wallet
        row.transferred_at = datetime.utcnow()
        await db.flush()
        logger.info(f"Ledger: token #{token_id} {from_wallet[:8]}... -> {to_wallet[:8]}...")

    async def tokens_of(self, db: AsyncSession, holder: str) -> list[int]:
        """Token ids currently held by a wallet, in mint order."""
        result = await db.execute(
            select(PassOwnership.token_id)
            .where(PassOwnership.holder_wallet == holder)
            .order_by(PassOwnership.token_id)
        )
        return list(result.scalars().all())

    async def total_supply(self, db: AsyncSession) -> int:
        result = await db.execute(select(func.count()).select_from(PassOwnership))
        return result.scalar_one()
