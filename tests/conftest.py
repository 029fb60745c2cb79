"""
Pytest configuration and fixtures.
"""
import os
import tempfile
from typing import Any, AsyncGenerator

# Settings are read at import time; point them at throwaway locations first.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="ezpay-logs-"))
os.environ.setdefault("PIN_HASH_ROUNDS", "4")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ezpay.api.deps import get_db
from ezpay.app import app
from ezpay.db.models import AccountHolder, Beneficiary
from ezpay.db.session import init_db
from ezpay.security import PinHasher
from ezpay.services.account_holders import AccountHolderService
from ezpay.services.beneficiaries import BeneficiaryService
from ezpay.services.ledger import AccountLocks, HolderLedger, UPILedger
from ezpay.services.payment_instructions import PaymentInstructionService
from ezpay.services.upi_accounts import UPIAccountService
from ezpay.services.upi_transactions import UPITransactionService
from tests.fakes import (
    FakeAccountHolderStore,
    FakeBeneficiaryStore,
    FakeInstructionStore,
    FakeUPIAccountStore,
    FakeUPITransactionStore,
)


# ----------------------------------------------------------------------
# Database
# ----------------------------------------------------------------------
@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite engine shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, Any]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, Any]:
    """HTTP client against the app, bound to the in-memory database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ----------------------------------------------------------------------
# In-memory stores and services
# ----------------------------------------------------------------------
@pytest.fixture
def pin_hasher() -> PinHasher:
    return PinHasher(rounds=4)


@pytest.fixture
def locks() -> AccountLocks:
    return AccountLocks()


@pytest.fixture
def holders() -> FakeAccountHolderStore:
    return FakeAccountHolderStore()


@pytest.fixture
def beneficiaries() -> FakeBeneficiaryStore:
    return FakeBeneficiaryStore()


@pytest.fixture
def instructions() -> FakeInstructionStore:
    return FakeInstructionStore()


@pytest.fixture
def upi_accounts() -> FakeUPIAccountStore:
    return FakeUPIAccountStore()


@pytest.fixture
def upi_transactions() -> FakeUPITransactionStore:
    return FakeUPITransactionStore()


@pytest.fixture
def holder_service(holders, beneficiaries, instructions) -> AccountHolderService:
    return AccountHolderService(holders, beneficiaries, instructions)


@pytest.fixture
def beneficiary_service(beneficiaries) -> BeneficiaryService:
    return BeneficiaryService(beneficiaries)


@pytest.fixture
def make_instruction_service(holders, beneficiaries, instructions, holder_service, locks):
    """Build an instruction service with a fixed random draw."""

    def _make(draw: float = 0.5, exclusive: bool = True) -> PaymentInstructionService:
        return PaymentInstructionService(
            instructions,
            beneficiaries,
            holder_service,
            HolderLedger(holders, locks, exclusive=exclusive),
            random_source=lambda: draw,
            success_threshold=0.1,
        )

    return _make


@pytest.fixture
def upi_account_service(upi_accounts, locks, pin_hasher) -> UPIAccountService:
    return UPIAccountService(upi_accounts, UPILedger(upi_accounts, locks), pin_hasher)


@pytest.fixture
def upi_transaction_service(upi_transactions, upi_accounts, locks, pin_hasher) -> UPITransactionService:
    return UPITransactionService(upi_transactions, upi_accounts, UPILedger(upi_accounts, locks), pin_hasher)


# ----------------------------------------------------------------------
# Seed data
# ----------------------------------------------------------------------
@pytest.fixture
def muskan(holders) -> AccountHolder:
    return holders.insert(
        AccountHolder(
            full_name="Muskan Sharma",
            username="muskan",
            email="muskan@example.com",
            mobile_number="9000000001",
            upi_id="muskan@okbank",
            balance=1000.0,
        )
    )


@pytest.fixture
def ravi(holders) -> AccountHolder:
    return holders.insert(
        AccountHolder(
            full_name="Ravi Kumar",
            username="ravi",
            email="ravi@example.com",
            mobile_number="9000000002",
            upi_id="ravi@okbank",
            balance=50.0,
        )
    )


@pytest.fixture
def payee(beneficiaries, muskan) -> Beneficiary:
    return beneficiaries.insert(
        Beneficiary(
            account_holder_id=muskan.id,
            name="Asha Traders",
            account_number="123456789012",
            bank_name="State Bank",
            ifsc="SBIN0001234",
            email="asha@example.com",
            phone="9111111111",
        )
    )
