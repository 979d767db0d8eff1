"""
Tests for reentrancy protection and call serialisation.

A custody whose refund or payout step calls back into the registry stands in
for a counterparty that tries to re-enter the registry while an outer call is
still running.
"""
import asyncio

import pytest

from domain.errors import MintingDisabledError, ReentrantCallError
from services.custody_service import SqlCustody
from tests.conftest import ADMIN_WALLET, HOLDER_WALLET, OTHER_WALLET, THIRD_WALLET, MINT_PRICE, make_registry


class ReenteringCustody(SqlCustody):
    """Tries a nested registry call from inside the refund step."""

    def __init__(self, nested_call):
        self.nested_call = nested_call
        self.registry = None
        self.nested_errors = []

    async def refund(self, db, to_wallet, amount_micro):
        try:
            await self.nested_call(self.registry, db, to_wallet, amount_micro)
        except ReentrantCallError as e:
            self.nested_errors.append(e)
        await super().refund(db, to_wallet, amount_micro)


async def _remint(registry, db, wallet, amount):
    await registry.mint(db, wallet, OTHER_WALLET, amount)


async def _award(registry, db, wallet, amount):
    await registry.award_points(db, ADMIN_WALLET, 1, 10)


async def _registry_with(nested_call, db):
    custody = ReenteringCustody(nested_call)
    registry = make_registry(custody=custody)
    custody.registry = registry
    await registry.set_minting_enabled(db, ADMIN_WALLET, True)
    return registry, custody


@pytest.mark.unit
async def test_nested_mint_from_refund_rejected(db_session):
    registry, custody = await _registry_with(_remint, db_session)

    result = await registry.mint(db_session, HOLDER_WALLET, HOLDER_WALLET, 3 * MINT_PRICE)

    assert result["token_id"] == 1
    assert len(custody.nested_errors) == 1
    assert custody.nested_errors[0].details == {"operation": "mint"}
    assert custody.nested_errors[0].status_code == 423
    # Only the outer mint happened
    assert await registry.has_minted(db_session, OTHER_WALLET) is False
    assert (await registry.get_registry_info(db_session))["total_supply"] == 1


@pytest.mark.unit
async def test_any_mutating_call_rejected_during_mint(db_session):
    registry, custody = await _registry_with(_award, db_session)

    await registry.mint(db_session, HOLDER_WALLET, HOLDER_WALLET, MINT_PRICE + 1)

    assert [e.details["operation"] for e in custody.nested_errors] == ["award_points"]
    assert await registry.get_points(db_session, 1) == 0


@pytest.mark.unit
async def test_reads_allowed_during_mint(db_session):
    seen = {}

    async def _read(registry, db, wallet, amount):
        seen["has_minted"] = await registry.has_minted(db, HOLDER_WALLET)

    registry, custody = await _registry_with(_read, db_session)
    await registry.mint(db_session, HOLDER_WALLET, HOLDER_WALLET, MINT_PRICE + 1)

    # The restriction flag is already recorded when value is refunded
    assert seen == {"has_minted": True}
    assert custody.nested_errors == []


@pytest.mark.unit
async def test_guard_released_after_mint(db_session):
    registry, _ = await _registry_with(_remint, db_session)
    await registry.mint(db_session, HOLDER_WALLET, HOLDER_WALLET, MINT_PRICE)

    # Same task, after the mint returned: mutating calls work again
    await registry.award_points(db_session, ADMIN_WALLET, 1, 5)
    assert await registry.get_points(db_session, 1) == 5


@pytest.mark.unit
async def test_guard_released_after_failed_mint(registry, db_session):
    with pytest.raises(MintingDisabledError):
        await registry.mint(db_session, HOLDER_WALLET, HOLDER_WALLET, MINT_PRICE)

    await asyncio.wait_for(registry.set_minting_enabled(db_session, ADMIN_WALLET, True), timeout=2)
    result = await asyncio.wait_for(
        registry.mint(db_session, HOLDER_WALLET, HOLDER_WALLET, MINT_PRICE), timeout=2,
    )
    assert result["token_id"] == 1


@pytest.mark.unit
async def test_concurrent_mints_are_serialised(live_registry, db_session):
    results = await asyncio.gather(
        live_registry.mint(db_session, HOLDER_WALLET, HOLDER_WALLET, MINT_PRICE),
        live_registry.mint(db_session, OTHER_WALLET, OTHER_WALLET, MINT_PRICE),
        live_registry.mint(db_session, THIRD_WALLET, THIRD_WALLET, MINT_PRICE),
    )

    assert sorted(r["token_id"] for r in results) == [1, 2, 3]


class ReenteringPayoutCustody(SqlCustody):
    """Tries a nested registry call from inside the withdraw payout."""

    def __init__(self):
        self.registry = None
        self.nested_errors = []

    async def transfer_all(self, db, to_wallet):
        try:
            await self.registry.set_minting_enabled(db, ADMIN_WALLET, False)
        except ReentrantCallError as e:
            self.nested_errors.append(e)
        return await super().transfer_all(db, to_wallet)


@pytest.mark.unit
async def test_nested_call_from_withdraw_payout_rejected(db_session):
    custody = ReenteringPayoutCustody()
    registry = make_registry(custody=custody)
    custody.registry = registry
    await registry.set_minting_enabled(db_session, ADMIN_WALLET, True)
    await registry.mint(db_session, HOLDER_WALLET, HOLDER_WALLET, MINT_PRICE)

    withdrawn = await asyncio.wait_for(registry.withdraw(db_session, ADMIN_WALLET), timeout=2)

    assert withdrawn == MINT_PRICE
    assert [e.details["operation"] for e in custody.nested_errors] == ["set_minting_enabled"]
    assert (await registry.get_registry_info(db_session))["minting_enabled"] is True


@pytest.mark.unit
async def test_nested_call_from_ledger_transfer_rejected(live_registry, db_session):
    await live_registry.mint(db_session, HOLDER_WALLET, HOLDER_WALLET, MINT_PRICE)
    nested_errors = []
    ledger_transfer = live_registry.ledger.transfer

    async def transfer(db, token_id, from_wallet, to_wallet):
        try:
            await live_registry.award_points(db, ADMIN_WALLET, token_id, 10)
        except ReentrantCallError as e:
            nested_errors.append(e)
        await ledger_transfer(db, token_id, from_wallet, to_wallet)

    live_registry.ledger.transfer = transfer
    await asyncio.wait_for(
        live_registry.transfer_pass(db_session, HOLDER_WALLET, 1, OTHER_WALLET), timeout=2,
    )

    assert [e.details["operation"] for e in nested_errors] == ["award_points"]
    assert await live_registry.ledger.current_holder(db_session, 1) == OTHER_WALLET
    assert await live_registry.get_points(db_session, 1) == 0


@pytest.mark.unit
async def test_guard_is_per_registry(db_session):
    """A second registry instance is not blocked by the first one's running call."""
    other = make_registry()
    seen = {}

    async def _other_registry(registry, db, wallet, amount):
        await other.set_mint_price(db, ADMIN_WALLET, 7_000)
        seen["price"] = (await other.get_registry_info(db))["mint_price_micro"]

    registry, custody = await _registry_with(_other_registry, db_session)
    await registry.mint(db_session, HOLDER_WALLET, HOLDER_WALLET, MINT_PRICE + 1)

    assert custody.nested_errors == []
    assert seen == {"price": 7_000}
