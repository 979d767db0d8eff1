"""
Unit tests for the SQL ownership ledger and custody collaborators.
"""
import pytest

from services.custody_service import SqlCustody
from services.ledger_service import SqlOwnershipLedger, TokenAlreadyBoundError
from tests.conftest import HOLDER_WALLET, OTHER_WALLET, ADMIN_WALLET


class TestSqlOwnershipLedger:

    @pytest.mark.unit
    async def test_bind_and_lookup(self, db_session):
        ledger = SqlOwnershipLedger()
        assert await ledger.exists(db_session, 1) is False
        assert await ledger.current_holder(db_session, 1) is None

        await ledger.bind_new_token(db_session, 1, HOLDER_WALLET)

        assert await ledger.exists(db_session, 1) is True
        assert await ledger.current_holder(db_session, 1) == HOLDER_WALLET
        assert await ledger.total_supply(db_session) == 1

    @pytest.mark.unit
    async def test_one_holder_per_token(self, db_session):
        ledger = SqlOwnershipLedger()
        await ledger.bind_new_token(db_session, 1, HOLDER_WALLET)
        with pytest.raises(TokenAlreadyBoundError):
            await ledger.bind_new_token(db_session, 1, OTHER_WALLET)

    @pytest.mark.unit
    async def test_transfer_and_enumeration(self, db_session):
        ledger = SqlOwnershipLedger()
        await ledger.bind_new_token(db_session, 1, HOLDER_WALLET)
        await ledger.bind_new_token(db_session, 2, HOLDER_WALLET)

        await ledger.transfer(db_session, 1, HOLDER_WALLET, OTHER_WALLET)

        assert await ledger.tokens_of(db_session, HOLDER_WALLET) == [2]
        assert await ledger.tokens_of(db_session, OTHER_WALLET) == [1]

    @pytest.mark.unit
    async def test_transfer_from_non_holder_refused(self, db_session):
        ledger = SqlOwnershipLedger()
        await ledger.bind_new_token(db_session, 1, HOLDER_WALLET)
        with pytest.raises(LookupError):
            await ledger.transfer(db_session, 1, OTHER_WALLET, ADMIN_WALLET)


class TestSqlCustody:

    @pytest.mark.unit
    async def test_empty_balance(self, db_session):
        assert await SqlCustody().balance(db_session) == 0

    @pytest.mark.unit
    async def test_deposit_refund_withdraw(self, db_session):
        custody = SqlCustody()
        await custody.deposit(db_session, HOLDER_WALLET, 15_000)
        await custody.refund(db_session, HOLDER_WALLET, 10_000)
        assert await custody.balance(db_session) == 5_000

        assert await custody.transfer_all(db_session, ADMIN_WALLET) == 5_000
        assert await custody.balance(db_session) == 0
        assert await custody.transfer_all(db_session, ADMIN_WALLET) == 0

    @pytest.mark.unit
    async def test_zero_deposit_not_recorded(self, db_session):
        custody = SqlCustody()
        await custody.deposit(db_session, HOLDER_WALLET, 0)
        assert await custody.balance(db_session) == 0
