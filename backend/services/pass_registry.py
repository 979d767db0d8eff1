"""
Pass Registry — issuance and metadata rules for Genesis Passes.

Owns:
    - per-pass metadata (points, claim flag, access level, airdrop fields)
    - per-wallet mint restriction flags and historical points totals
    - the singleton registry config (switches, price, id counter, admin)

Ownership ("who holds token X") and funds custody are delegated to the
collaborators passed in at construction time.

Rules:
    - One mint per wallet while its mint flag is set; ids start at 1 and are
      never reused; at most ``max_supply`` passes.
    - Points only go up. Awards credit the wallet holding the pass at award
      time; totals are not moved when the pass is transferred.
    - Token claim happens at most once per pass.
    - Every failed call leaves no writes: all checks run before the first
      mutation, batches included.

Concurrency:
    Mutating calls are serialised by a per-instance asyncio lock. While one
    runs, the registry is marked active in the current context; any mutating
    call made from inside it (e.g. a custody refund or payout hook calling
    back into the registry) is rejected with ReentrantCallError instead of
    waiting on the lock.
"""
import asyncio
import functools
import logging
from contextvars import ContextVar
from datetime import datetime
from typing import NamedTuple, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from db_models import (
    REGISTRY_CONFIG_ID,
    PassRecord,
    RegistryConfig,
    WalletMintFlag,
    WalletPoints,
)
from domain.constants import BASE_ACCESS_LEVEL, BASE_AIRDROP_MULTIPLIER
from domain.enums import RegistryEventType
from domain.errors import (
    AlreadyClaimedError,
    AlreadyMintedError,
    ClaimingDisabledError,
    InsufficientPaymentError,
    InvalidPriceError,
    LengthMismatchError,
    MintingDisabledError,
    MultiplierTooLowError,
    NoFundsError,
    NotTokenOwnerError,
    ReentrantCallError,
    SupplyExhaustedError,
    TokenNotFoundError,
    UnauthorizedError,
    ValidationError,
)
from services import event_service
from services.custody_service import Custody
from services.ledger_service import OwnershipLedger

logger = logging.getLogger(__name__)


class PassData(NamedTuple):
    points: int
    tokens_claimed: bool
    access_level: int
    airdrop_eligible: bool
    airdrop_multiplier: int


def _require_unsigned(name: str, value: int) -> None:
    if value < 0:
        raise ValidationError("must be a non-negative integer", field=name)


# Registries with a mutating call running in the current context
_active_registries: ContextVar[frozenset] = ContextVar("pass_registry_active", default=frozenset())


def _mutating(func):
    """Serialise a mutating registry call and refuse it inside another one."""
    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        active = _active_registries.get()
        if id(self) in active:
            raise ReentrantCallError(func.__name__)
        async with self._lock:
            marker = _active_registries.set(active | {id(self)})
            try:
                return await func(self, *args, **kwargs)
            finally:
                _active_registries.reset(marker)
    return wrapper


class PassRegistry:
    """The pass registry state machine."""

    def __init__(
        self,
        ledger: OwnershipLedger,
        custody: Custody,
        *,
        admin_wallet: str,
        max_supply: int,
        tokens_per_pass: int,
        default_mint_price_micro: int,
    ):
        self.ledger = ledger
        self.custody = custody
        self.admin_wallet = admin_wallet
        self.max_supply = max_supply
        self.tokens_per_pass = tokens_per_pass
        self.default_mint_price_micro = default_mint_price_micro

        self._lock = asyncio.Lock()
    # ── Config ──────────────────────────────────────────────────────

    async def load_config(self, db: AsyncSession) -> RegistryConfig:
        """Return the config row, creating it with deployment defaults on first use."""
        cfg = await db.get(RegistryConfig, REGISTRY_CONFIG_ID)
        if cfg is None:
            cfg = RegistryConfig(
                id=REGISTRY_CONFIG_ID,
                admin_wallet=self.admin_wallet,
                minting_enabled=False,
                token_claim_enabled=False,
                mint_price_micro=self.default_mint_price_micro,
                next_token_id=1,
                max_supply=self.max_supply,
                tokens_per_pass=self.tokens_per_pass,
            )
            db.add(cfg)
            await db.flush()
            logger.info(
                f"Registry config initialised (admin={self.admin_wallet[:8]}..., "
                f"max_supply={self.max_supply}, price={self.default_mint_price_micro} µA)"
            )
        return cfg

    async def _require_admin(self, db: AsyncSession, caller: str) -> RegistryConfig:
        cfg = await self.load_config(db)
        if not cfg.admin_wallet or caller != cfg.admin_wallet:
            logger.warning(f"Rejected admin call from {caller[:8] if caller else '<none>'}...")
            raise UnauthorizedError(caller)
        return cfg

    async def _require_holder(self, db: AsyncSession, token_id: int) -> str:
        holder = await self.ledger.current_holder(db, token_id)
        if holder is None:
            raise TokenNotFoundError(token_id)
        return holder

    async def _require_pass(self, db: AsyncSession, token_id: int) -> PassRecord:
        await self._require_holder(db, token_id)
        record = await db.get(PassRecord, token_id)
        if record is None:
            raise TokenNotFoundError(token_id)
        return record

    # ── Mint ────────────────────────────────────────────────────────

    @_mutating
    async def mint(
        self,
        db: AsyncSession,
        caller: str,
        recipient: str,
        amount_paid_micro: int,
    ) -> dict:
        """
        Mint the next pass to ``recipient``, paid for by ``caller``.

        Returns:
            dict: {token_id, price_micro, refund_micro}
        """
        _require_unsigned("amount_paid_micro", amount_paid_micro)
        cfg = await self.load_config(db)

        if not cfg.minting_enabled:
            raise MintingDisabledError()
        price = cfg.mint_price_micro
        if amount_paid_micro < price:
            raise InsufficientPaymentError(amount_paid_micro, price)
        if cfg.next_token_id - 1 >= cfg.max_supply:
            raise SupplyExhaustedError(cfg.max_supply)
        if await self.has_minted(db, recipient):
            raise AlreadyMintedError(recipient)

        token_id = cfg.next_token_id
        cfg.next_token_id = token_id + 1

        # Restriction flag and metadata are recorded before any value leaves custody
        await self._set_mint_flag(db, recipient, True)
        db.add(PassRecord(
            token_id=token_id,
            points=0,
            tokens_claimed=False,
            access_level=BASE_ACCESS_LEVEL,
            airdrop_eligible=False,
            airdrop_multiplier=BASE_AIRDROP_MULTIPLIER,
            minted_at=datetime.utcnow(),
        ))
        await db.flush()

        await self.ledger.bind_new_token(db, token_id, recipient)
        await self.custody.deposit(db, caller, amount_paid_micro)

        refund = amount_paid_micro - price
        if refund > 0:
            await self.custody.refund(db, caller, refund)

        await event_service.emit(
            db,
            RegistryEventType.MINTED,
            token_id=token_id,
            wallet=recipient,
            to=recipient,
            price=price,
        )
        logger.info(
            f"🎟️ Pass #{token_id} minted to {recipient[:8]}... "
            f"(paid {amount_paid_micro} µA, refund {refund} µA)"
        )
        return {"token_id": token_id, "price_micro": price, "refund_micro": refund}

    # ── Claim ───────────────────────────────────────────────────────

    @_mutating
    async def claim_tokens(self, db: AsyncSession, caller: str, token_id: int) -> dict:
        """Claim the ecosystem token grant attached to a pass. Once per pass."""
        cfg = await self.load_config(db)
        if not cfg.token_claim_enabled:
            raise ClaimingDisabledError()

        holder = await self.ledger.current_holder(db, token_id)
        if holder is None or holder != caller:
            raise NotTokenOwnerError(token_id, caller)

        record = await db.get(PassRecord, token_id)
        if record is None:
            raise TokenNotFoundError(token_id)
        if record.tokens_claimed:
            raise AlreadyClaimedError(token_id)

        record.tokens_claimed = True
        record.claimed_at = datetime.utcnow()
        await db.flush()

        await event_service.emit(
            db,
            RegistryEventType.TOKENS_CLAIMED,
            token_id=token_id,
            wallet=caller,
            claimer=caller,
            amount=cfg.tokens_per_pass,
        )
        return {"token_id": token_id, "tokens": cfg.tokens_per_pass}

    # ── Points ──────────────────────────────────────────────────────

    async def _apply_points(self, db: AsyncSession, record: PassRecord, holder: str, amount: int) -> int:
        record.points += amount
        wallet_row = await db.get(WalletPoints, holder)
        if wallet_row is None:
            wallet_row = WalletPoints(wallet_address=holder, total_points=0)
            db.add(wallet_row)
        wallet_row.total_points += amount
        wallet_row.updated_at = datetime.utcnow()
        await db.flush()

        await event_service.emit(
            db,
            RegistryEventType.POINTS_AWARDED,
            token_id=record.token_id,
            wallet=holder,
            points=amount,
            total_points=record.points,
        )
        return record.points

    @_mutating
    async def award_points(self, db: AsyncSession, caller: str, token_id: int, amount: int) -> int:
        """Add points to a pass and to its holder's total. Returns the pass total."""
        await self._require_admin(db, caller)
        _require_unsigned("amount", amount)
        holder = await self._require_holder(db, token_id)
        record = await self._require_pass(db, token_id)
        return await self._apply_points(db, record, holder, amount)

    @_mutating
    async def batch_award_points(
        self,
        db: AsyncSession,
        caller: str,
        token_ids: Sequence[int],
        amounts: Sequence[int],
    ) -> list[int]:
        """
        Award points pairwise. Every pair is checked before anything is
        written, so the batch is applied completely or not at all.
        """
        await self._require_admin(db, caller)
        if len(token_ids) != len(amounts):
            raise LengthMismatchError({"token_ids": len(token_ids), "amounts": len(amounts)})

        checked = []
        for token_id, amount in zip(token_ids, amounts):
            _require_unsigned("amount", amount)
            holder = await self._require_holder(db, token_id)
            record = await self._require_pass(db, token_id)
            checked.append((record, holder, amount))

        return [
            await self._apply_points(db, record, holder, amount)
            for record, holder, amount in checked
        ]

    # ── Access level ────────────────────────────────────────────────

    @_mutating
    async def set_access_level(self, db: AsyncSession, caller: str, token_id: int, level: int) -> None:
        await self._require_admin(db, caller)
        _require_unsigned("level", level)
        record = await self._require_pass(db, token_id)

        record.access_level = level
        await db.flush()
        await event_service.emit(
            db,
            RegistryEventType.ACCESS_LEVEL_UPDATED,
            token_id=token_id,
            new_level=level,
        )

    # ── Airdrop ─────────────────────────────────────────────────────

    async def _check_airdrop(self, db: AsyncSession, token_id: int, multiplier: int) -> PassRecord:
        record = await self._require_pass(db, token_id)
        if multiplier < BASE_AIRDROP_MULTIPLIER:
            raise MultiplierTooLowError(multiplier, BASE_AIRDROP_MULTIPLIER)
        return record

    async def _apply_airdrop(self, db: AsyncSession, record: PassRecord, eligible: bool, multiplier: int) -> None:
        record.airdrop_eligible = eligible
        record.airdrop_multiplier = multiplier
        await db.flush()
        await event_service.emit(
            db,
            RegistryEventType.AIRDROP_ELIGIBILITY_UPDATED,
            token_id=record.token_id,
            eligible=eligible,
            multiplier=multiplier,
        )

    @_mutating
    async def set_airdrop_eligibility(
        self,
        db: AsyncSession,
        caller: str,
        token_id: int,
        eligible: bool,
        multiplier: int,
    ) -> None:
        await self._require_admin(db, caller)
        record = await self._check_airdrop(db, token_id, multiplier)
        await self._apply_airdrop(db, record, eligible, multiplier)

    @_mutating
    async def batch_set_airdrop_eligibility(
        self,
        db: AsyncSession,
        caller: str,
        token_ids: Sequence[int],
        eligible: Sequence[bool],
        multipliers: Sequence[int],
    ) -> None:
        """All-or-nothing, like batch_award_points."""
        await self._require_admin(db, caller)
        if not (len(token_ids) == len(eligible) == len(multipliers)):
            raise LengthMismatchError({
                "token_ids": len(token_ids),
                "eligible": len(eligible),
                "multipliers": len(multipliers),
            })

        checked = []
        for token_id, flag, multiplier in zip(token_ids, eligible, multipliers):
            record = await self._check_airdrop(db, token_id, multiplier)
            checked.append((record, flag, multiplier))

        for record, flag, multiplier in checked:
            await self._apply_airdrop(db, record, flag, multiplier)

    # ── Administration ──────────────────────────────────────────────

    @_mutating
    async def set_minting_enabled(self, db: AsyncSession, caller: str, enabled: bool) -> None:
        cfg = await self._require_admin(db, caller)
        cfg.minting_enabled = enabled
        cfg.updated_at = datetime.utcnow()
        await db.flush()
        await event_service.emit(db, RegistryEventType.MINTING_TOGGLED, enabled=enabled)

    @_mutating
    async def set_token_claim_enabled(self, db: AsyncSession, caller: str, enabled: bool) -> None:
        cfg = await self._require_admin(db, caller)
        cfg.token_claim_enabled = enabled
        cfg.updated_at = datetime.utcnow()
        await db.flush()
        await event_service.emit(db, RegistryEventType.CLAIM_TOGGLED, enabled=enabled)

    @_mutating
    async def set_mint_price(self, db: AsyncSession, caller: str, new_price_micro: int) -> None:
        cfg = await self._require_admin(db, caller)
        if new_price_micro <= 0:
            raise InvalidPriceError()
        cfg.mint_price_micro = new_price_micro
        cfg.updated_at = datetime.utcnow()
        await db.flush()
        await event_service.emit(db, RegistryEventType.MINT_PRICE_UPDATED, new_price=new_price_micro)

    @_mutating
    async def reset_mint_restriction(self, db: AsyncSession, caller: str, wallet: str) -> None:
        """Allow ``wallet`` to mint once more. No event."""
        await self._require_admin(db, caller)
        await self._set_mint_flag(db, wallet, False)
        logger.info(f"Mint restriction reset for {wallet[:8]}...")

    @_mutating
    async def withdraw(self, db: AsyncSession, caller: str) -> int:
        """Send the whole custody balance to the administrator. Returns the amount."""
        cfg = await self._require_admin(db, caller)
        if await self.custody.balance(db) == 0:
            raise NoFundsError()
        return await self.custody.transfer_all(db, cfg.admin_wallet)

    # ── Transfer ────────────────────────────────────────────────────

    @_mutating
    async def transfer_pass(self, db: AsyncSession, caller: str, token_id: int, to_wallet: str) -> None:
        """
        Hand a pass to another wallet via the ledger.

        Metadata travels with the token id; wallet points totals stay where
        they were awarded.
        """
        holder = await self._require_holder(db, token_id)
        if holder != caller:
            raise NotTokenOwnerError(token_id, caller)
        await self.ledger.transfer(db, token_id, caller, to_wallet)

    # ── Mint flags ──────────────────────────────────────────────────

    async def _set_mint_flag(self, db: AsyncSession, wallet: str, value: bool) -> None:
        row = await db.get(WalletMintFlag, wallet)
        if row is None:
            if not value:
                return
            row = WalletMintFlag(wallet_address=wallet, has_minted=value)
            db.add(row)
        else:
            row.has_minted = value
            row.updated_at = datetime.utcnow()
        await db.flush()

    # ── Reads ───────────────────────────────────────────────────────

    async def get_pass_data(self, db: AsyncSession, token_id: int) -> PassData:
        record = await self._require_pass(db, token_id)
        return PassData(
            points=record.points,
            tokens_claimed=record.tokens_claimed,
            access_level=record.access_level,
            airdrop_eligible=record.airdrop_eligible,
            airdrop_multiplier=record.airdrop_multiplier,
        )

    async def get_points(self, db: AsyncSession, token_id: int) -> int:
        return (await self._require_pass(db, token_id)).points

    async def check_access(self, db: AsyncSession, token_id: int) -> int:
        return (await self._require_pass(db, token_id)).access_level

    async def is_airdrop_eligible(self, db: AsyncSession, token_id: int) -> tuple[bool, int]:
        record = await self._require_pass(db, token_id)
        return record.airdrop_eligible, record.airdrop_multiplier

    async def get_wallet_points(self, db: AsyncSession, wallet: str) -> int:
        row = await db.get(WalletPoints, wallet)
        return row.total_points if row else 0

    async def has_minted(self, db: AsyncSession, wallet: str) -> bool:
        row = await db.get(WalletMintFlag, wallet)
        return bool(row and row.has_minted)

    async def get_registry_info(self, db: AsyncSession) -> dict:
        cfg = await self.load_config(db)
        total_supply = cfg.next_token_id - 1
        return {
            "max_supply": cfg.max_supply,
            "total_supply": total_supply,
            "remaining": cfg.max_supply - total_supply,
            "mint_price_micro": cfg.mint_price_micro,
            "minting_enabled": cfg.minting_enabled,
            "token_claim_enabled": cfg.token_claim_enabled,
            "tokens_per_pass": cfg.tokens_per_pass,
            "admin_wallet": cfg.admin_wallet,
        }
