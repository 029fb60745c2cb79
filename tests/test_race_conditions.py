"""
Race condition tests for balance movements.

Each "request" loads its own copy of the account holder, the way two HTTP
requests would, and the two run concurrently with asyncio.gather.
"""
import asyncio
import gc

import pytest

from ezpay.db.models import InstructionStatus, PaymentInstruction, UPIAccount, UPITransaction
from ezpay.exceptions import ConcurrentUpdateError, InsufficientBalanceError, InvalidStateError
from ezpay.services.account_holders import AccountHolderService
from ezpay.services.ledger import AccountLocks, HolderLedger, UPILedger
from ezpay.services.payment_instructions import PaymentInstructionService
from ezpay.services.upi_transactions import STATUS_PENDING, STATUS_SUCCESS, UPITransactionService
from tests.fakes import FakeAccountHolderStore, FakeBeneficiaryStore, FakeInstructionStore


def two_instructions(instructions, holder, beneficiary, amount):
    return [
        instructions.insert(
            PaymentInstruction(
                account_holder_id=holder.id,
                beneficiary_id=beneficiary.id,
                amount=amount,
                status=InstructionStatus.DRAFT,
            )
        )
        for _ in range(2)
    ]


async def submit(service, holders, holder_id, instruction_id):
    holder = await holders.find_by_id(holder_id)
    return await service.update_status(instruction_id, holder, InstructionStatus.SUBMITTED)


class TestConcurrentSubmits:
    """Two submits that together overdraw the holder."""

    async def test_locked_ledger_serializes_submits(self, make_instruction_service, holders, instructions, muskan, payee):
        first, second = two_instructions(instructions, muskan, payee, 600.0)
        service = make_instruction_service()

        results = await asyncio.gather(
            submit(service, holders, muskan.id, first.id),
            submit(service, holders, muskan.id, second.id),
            return_exceptions=True,
        )

        assert sum(isinstance(r, InsufficientBalanceError) for r in results) == 1
        assert holders.rows[muskan.id]["balance"] == 400.0
        statuses = sorted(instructions.rows[i.id]["status"].value for i in (first, second))
        assert statuses == ["DRAFT", "SUBMITTED"]

    async def test_version_check_catches_unlocked_race(self, make_instruction_service, holders, instructions, muskan, payee):
        first, second = two_instructions(instructions, muskan, payee, 600.0)
        service = make_instruction_service(exclusive=False)

        results = await asyncio.gather(
            submit(service, holders, muskan.id, first.id),
            submit(service, holders, muskan.id, second.id),
            return_exceptions=True,
        )

        assert sum(isinstance(r, ConcurrentUpdateError) for r in results) == 1
        assert holders.rows[muskan.id]["balance"] == 400.0

    async def test_blind_writes_lose_an_update(self, muskan, payee):
        """Without the lock or the version check both debits pass and one is lost."""
        holders = FakeAccountHolderStore(blind_writes=True)
        beneficiaries = FakeBeneficiaryStore()
        instructions = FakeInstructionStore()
        holders.insert(muskan)
        beneficiaries.insert(payee)
        service = PaymentInstructionService(
            instructions,
            beneficiaries,
            AccountHolderService(holders),
            HolderLedger(holders, AccountLocks(), exclusive=False),
        )
        first, second = two_instructions(instructions, muskan, payee, 600.0)

        await asyncio.gather(
            submit(service, holders, muskan.id, first.id),
            submit(service, holders, muskan.id, second.id),
        )

        # 1200 spent from 1000, but the balance only shows one debit
        assert holders.rows[muskan.id]["balance"] == 400.0
        assert all(instructions.rows[i.id]["status"] == InstructionStatus.SUBMITTED for i in (first, second))


class TestConcurrentUPIVerification:
    @pytest.fixture
    def funded(self, upi_accounts, pin_hasher):
        sender = upi_accounts.insert(
            UPIAccount(upi_id="alice@upi", balance=300, pin_hash=pin_hasher.hash("1234"), is_active=True)
        )
        receiver = upi_accounts.insert(
            UPIAccount(upi_id="bob@upi", balance=0, pin_hash=pin_hasher.hash("9999"), is_active=True)
        )
        return sender, receiver

    async def test_two_pending_transfers_cannot_both_settle(
        self, upi_transaction_service, upi_transactions, upi_accounts, funded
    ):
        sender, receiver = funded
        pending = [
            upi_transactions.insert(
                UPITransaction(sender_upi_id="alice@upi", receiver_upi_id="bob@upi", amount=200, status=STATUS_PENDING)
            )
            for _ in range(2)
        ]

        results = await asyncio.gather(
            *(upi_transaction_service.verify_transaction_pin(t.id, "1234") for t in pending),
            return_exceptions=True,
        )

        assert sum(isinstance(r, InsufficientBalanceError) for r in results) == 1
        assert upi_accounts.rows[sender.id]["balance"] == 100
        assert upi_accounts.rows[receiver.id]["balance"] == 200

    async def test_opposite_transfers_do_not_deadlock(
        self, upi_transaction_service, upi_transactions, upi_accounts, funded
    ):
        sender, receiver = funded
        upi_accounts.rows[receiver.id]["balance"] = 300
        there = upi_transactions.insert(
            UPITransaction(sender_upi_id="alice@upi", receiver_upi_id="bob@upi", amount=100, status=STATUS_PENDING)
        )
        back = upi_transactions.insert(
            UPITransaction(sender_upi_id="bob@upi", receiver_upi_id="alice@upi", amount=50, status=STATUS_PENDING)
        )

        await asyncio.wait_for(
            asyncio.gather(
                upi_transaction_service.verify_transaction_pin(there.id, "1234"),
                upi_transaction_service.verify_transaction_pin(back.id, "9999"),
            ),
            timeout=5,
        )

        assert upi_accounts.rows[sender.id]["balance"] == 250
        assert upi_accounts.rows[receiver.id]["balance"] == 350

    async def test_same_transaction_verified_twice_settles_once(
        self, upi_transaction_service, upi_transactions, upi_accounts, funded
    ):
        sender, receiver = funded
        pending = upi_transactions.insert(
            UPITransaction(sender_upi_id="alice@upi", receiver_upi_id="bob@upi", amount=200, status=STATUS_PENDING)
        )

        results = await asyncio.gather(
            upi_transaction_service.verify_transaction_pin(pending.id, "1234"),
            upi_transaction_service.verify_transaction_pin(pending.id, "1234"),
            return_exceptions=True,
        )

        assert sum(isinstance(r, InvalidStateError) for r in results) == 1
        assert upi_transactions.rows[pending.id]["status"] == STATUS_SUCCESS
        assert upi_accounts.rows[sender.id]["balance"] == 100
        assert upi_accounts.rows[receiver.id]["balance"] == 200

    async def test_status_claim_holds_across_separate_lock_tables(
        self, upi_transactions, upi_accounts, pin_hasher, funded
    ):
        # two workers that share the database but not their in-process locks
        sender, receiver = funded
        pending = upi_transactions.insert(
            UPITransaction(sender_upi_id="alice@upi", receiver_upi_id="bob@upi", amount=200, status=STATUS_PENDING)
        )
        workers = [
            UPITransactionService(upi_transactions, upi_accounts, UPILedger(upi_accounts, AccountLocks()), pin_hasher)
            for _ in range(2)
        ]

        results = await asyncio.gather(
            *(w.verify_transaction_pin(pending.id, "1234") for w in workers),
            return_exceptions=True,
        )

        assert sum(isinstance(r, InvalidStateError) for r in results) == 1
        assert upi_accounts.rows[sender.id]["balance"] == 100
        assert upi_accounts.rows[receiver.id]["balance"] == 200


class TestAccountLocks:
    async def test_locks_are_dropped_once_released(self, holders, locks, muskan, ravi):
        ledger = HolderLedger(holders, locks)

        async with ledger.hold(muskan, ravi):
            assert len(locks) == 2

        gc.collect()
        assert len(locks) == 0

    async def test_waiters_share_one_lock(self, locks):
        first = locks.get(("account", 1))

        assert locks.get(("account", 1)) is first
        assert locks.get(("account", 2)) is not first
