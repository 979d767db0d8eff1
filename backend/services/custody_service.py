"""
Custody Service — native value held by the registry.

Mint payments are deposited here, overpayments refunded from here, and the
administrator withdraws the whole balance. Amounts are microAlgos.
"""
import logging
from typing import Protocol

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import CustodyMovement
from domain.enums import CustodyMovementKind

logger = logging.getLogger(__name__)


class Custody(Protocol):
    """Outbound interface the registry calls for funds handling."""

    async def balance(self, db: AsyncSession) -> int: ...

    async def deposit(self, db: AsyncSession, payer: str, amount_micro: int) -> None: ...

    async def refund(self, db: AsyncSession, to_wallet: str, amount_micro: int) -> None: ...

    async def transfer_all(self, db: AsyncSession, to_wallet: str) -> int: ...


class SqlCustody:
    """Custody backed by an append-only ``custody_movements`` table."""

    async def balance(self, db: AsyncSession) -> int:
        signed = case(
            (CustodyMovement.kind == CustodyMovementKind.DEPOSIT.value, CustodyMovement.amount_micro),
            else_=-CustodyMovement.amount_micro,
        )
        result = await db.execute(select(func.coalesce(func.sum(signed), 0)))
        return int(result.scalar_one())

    async def _record(self, db: AsyncSession, kind: CustodyMovementKind, counterparty: str, amount_micro: int) -> None:
        db.add(CustodyMovement(
            kind=kind.value,
            counterparty=counterparty,
            amount_micro=amount_micro,
        ))
        await db.flush()

    async def deposit(self, db: AsyncSession, payer: str, amount_micro: int) -> None:
        if amount_micro <= 0:
            return
        await self._record(db, CustodyMovementKind.DEPOSIT, payer, amount_micro)

    async def refund(self, db: AsyncSession, to_wallet: str, amount_micro: int) -> None:
        await self._record(db, CustodyMovementKind.REFUND, to_wallet, amount_micro)
        logger.info(f"Custody: refunded {amount_micro} µA to {to_wallet[:8]}...")

    async def transfer_all(self, db: AsyncSession, to_wallet: str) -> int:
        """Send the entire balance to ``to_wallet``. Returns the amount sent."""
        amount = await self.balance(db)
        if amount > 0:
            await self._record(db, CustodyMovementKind.WITHDRAWAL, to_wallet, amount)
            logger.info(f"Custody: withdrew {amount} µA to {to_wallet[:8]}...")
        return amount
