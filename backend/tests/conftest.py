"""
Pytest configuration and shared fixtures for the Genesis Pass tests.

Provides an in-memory SQLite session, a registry wired to the SQL ledger and
custody, valid Algorand wallets, and an httpx client over the FastAPI app.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

# Must be set before config/database are imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from typing import AsyncGenerator

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from config import settings
from database import Base, get_db
import db_models  # noqa: F401  (registers tables on Base.metadata)
from services.custody_service import SqlCustody
from services.ledger_service import SqlOwnershipLedger
from middleware.auth import issue_access_token
from services.pass_registry import PassRegistry

# ── Test Configuration ───────────────────────────────────────────────
if not settings.jwt_secret:
    settings.jwt_secret = "test-jwt-secret-for-pytest-only"

# Valid (checksummed) Algorand addresses
ADMIN_WALLET = "CFZRI425PCKOE7PN3ICOQLFHXQMB2FLM45BYLEHXVLFHIQCU2NDCFKIHM4"
HOLDER_WALLET = "K2N7KBBVYX5XOZHOPM2PVRKL6DOJXLTYNKV53372QJG4YD3UH57LBHGNCE"
OTHER_WALLET = "CEIRCEIRCEIRCEIRCEIRCEIRCEIRCEIRCEIRCEIRCEIRCEIRCEI7JH2AYM"
THIRD_WALLET = "EIRCEIRCEIRCEIRCEIRCEIRCEIRCEIRCEIRCEIRCEIRCEIRCEIRDOHSEZI"

MINT_PRICE = 5_000  # 0.005 ALGO


def make_registry(**overrides) -> PassRegistry:
    params = {
        "admin_wallet": ADMIN_WALLET,
        "max_supply": 1000,
        "tokens_per_pass": 100,
        "default_mint_price_micro": MINT_PRICE,
    }
    params.update(overrides)
    ledger = params.pop("ledger", None) or SqlOwnershipLedger()
    custody = params.pop("custody", None) or SqlCustody()
    return PassRegistry(ledger, custody, **params)


# ── Database Fixtures ────────────────────────────────────────────────


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create an in-memory SQLite database session for each test.

    Uses StaticPool to allow in-memory SQLite with async SQLAlchemy.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()


# ── Registry Fixtures ────────────────────────────────────────────────


@pytest.fixture
def registry() -> PassRegistry:
    return make_registry()


@pytest.fixture
async def live_registry(registry: PassRegistry, db_session: AsyncSession) -> PassRegistry:
    """Registry with minting and claiming switched on."""
    await registry.set_minting_enabled(db_session, ADMIN_WALLET, True)
    await registry.set_token_claim_enabled(db_session, ADMIN_WALLET, True)
    return registry


@pytest.fixture
async def minted_pass(live_registry: PassRegistry, db_session: AsyncSession) -> int:
    """Token id of a pass minted to HOLDER_WALLET at the exact price."""
    result = await live_registry.mint(db_session, HOLDER_WALLET, HOLDER_WALLET, MINT_PRICE)
    return result["token_id"]


@pytest.fixture
def admin_wallet() -> str:
    return ADMIN_WALLET


@pytest.fixture
def holder_wallet() -> str:
    return HOLDER_WALLET


@pytest.fixture
def other_wallet() -> str:
    return OTHER_WALLET


# ── HTTP Fixtures ────────────────────────────────────────────────────


@pytest.fixture
async def client(db_session: AsyncSession, registry: PassRegistry):
    """
    httpx client over the app with the test DB session and registry injected.
    """
    from main import app
    from deps import get_registry
    from middleware.rate_limit import _limiter

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_registry] = lambda: registry
    _limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


def as_wallet(wallet: str) -> dict:
    """Legacy caller header for a wallet."""
    return {"X-Wallet-Address": wallet}


def as_bearer(wallet: str) -> dict:
    """Authorization header with a freshly issued access token for a wallet."""
    return {"Authorization": f"Bearer {issue_access_token(wallet_address=wallet)}"}
