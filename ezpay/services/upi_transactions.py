"""
UPI transaction engine.

A transaction is created PENDING after validating the receiver id, the amount
and that both accounts exist and the sender can cover it. Money moves only in
``verify_transaction_pin``: the sender's PIN is checked, then, with both
accounts held, the transaction is re-read and must still be PENDING, the
balance is checked again (it may have changed since creation), the status is
claimed with a conditional PENDING -> SUCCESS write, and the sender is
debited and the receiver credited in the same unit of work.

Unlike payment instructions, deleting an unknown transaction is not an error:
``delete_transaction`` reports whether a row existed.
"""

from datetime import datetime, timezone
from typing import List, Optional

from ezpay.db.models import UPITransaction
from ezpay.db.repositories import UPIAccountRepository, UPITransactionRepository
from ezpay.exceptions import (
    AccountNotFoundError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidFormatError,
    InvalidPinError,
    InvalidStateError,
    TransactionNotFoundError,
)
from ezpay.logging_config import get_logger
from ezpay.security import PinHasher
from ezpay.services.ledger import UPILedger
from ezpay.services.upi_accounts import is_valid_upi_id

logger = get_logger("ezpay.services.upi_transactions")

STATUS_PENDING = "PENDING"
STATUS_SUCCESS = "SUCCESS"


class UPITransactionService:
    def __init__(
        self,
        transactions: UPITransactionRepository,
        accounts: UPIAccountRepository,
        ledger: UPILedger,
        pin_hasher: Optional[PinHasher] = None,
    ):
        self.transactions = transactions
        self.accounts = accounts
        self.ledger = ledger
        self.pin_hasher = pin_hasher or PinHasher()

    async def add_transaction(self, transaction: UPITransaction) -> UPITransaction:
        if not is_valid_upi_id(transaction.receiver_upi_id):
            raise InvalidFormatError("Invalid UPI ID format.")

        if transaction.amount is None or transaction.amount <= 0:
            raise InvalidAmountError("Amount must be greater than zero.")

        sender = await self.accounts.find_by_upi_id(transaction.sender_upi_id)
        if sender is None:
            raise AccountNotFoundError(f"Sender account not found for UPI ID: {transaction.sender_upi_id}")

        # Only checked for existence; nothing is reserved on the receiver.
        receiver = await self.accounts.find_by_upi_id(transaction.receiver_upi_id)
        if receiver is None:
            raise AccountNotFoundError(f"Receiver account not found for UPI ID: {transaction.receiver_upi_id}")

        if transaction.amount > sender.balance:
            raise InsufficientBalanceError("Insufficient balance in sender's account.")

        transaction.status = STATUS_PENDING
        transaction.timestamp = datetime.now(timezone.utc)
        saved = await self.transactions.save(transaction)
        logger.info(
            "UPI transaction %s pending: %s -> %s amount=%s",
            saved.id,
            saved.sender_upi_id,
            saved.receiver_upi_id,
            saved.amount,
        )
        return saved

    async def verify_transaction_pin(self, transaction_id: int, pin: str) -> UPITransaction:
        transaction = await self.transactions.find_by_id(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError("Transaction not found")

        if transaction.status != STATUS_PENDING:
            raise InvalidStateError("Transaction already processed.")

        sender = await self.accounts.find_by_upi_id(transaction.sender_upi_id)
        if sender is None:
            raise AccountNotFoundError("Sender account not found")

        receiver = await self.accounts.find_by_upi_id(transaction.receiver_upi_id)
        if receiver is None:
            raise AccountNotFoundError("Receiver account not found")

        if not self.pin_hasher.verify(pin, sender.pin_hash):
            logger.warning("Invalid PIN for UPI transaction %s sender=%s", transaction_id, sender.upi_id)
            raise InvalidPinError("Invalid PIN provided")

        async with self.ledger.hold(sender, receiver):
            # a concurrent verification may have settled it while we waited
            await self.transactions.refresh(transaction)
            if transaction.status != STATUS_PENDING:
                raise InvalidStateError("Transaction already processed.")

            if sender.balance < transaction.amount:
                raise InsufficientBalanceError("Insufficient balance in sender's account")

            if not await self.transactions.transition_status(transaction, STATUS_PENDING, STATUS_SUCCESS):
                raise InvalidStateError("Transaction already processed.")

            await self.ledger.debit(sender, transaction.amount)
            await self.ledger.credit(receiver, transaction.amount)
            await self.transactions.commit()

        logger.info("UPI transaction %s verified and settled", transaction_id)
        return transaction

    async def get_all(self) -> List[UPITransaction]:
        return await self.transactions.find_all()

    async def get_by_id(self, transaction_id: int) -> Optional[UPITransaction]:
        return await self.transactions.find_by_id(transaction_id)

    async def get_by_status(self, status: str) -> List[UPITransaction]:
        return await self.transactions.find_by_status(status)

    async def get_by_receiver_upi_id(self, upi_id: str) -> List[UPITransaction]:
        return await self.transactions.find_by_receiver_upi_id(upi_id)

    async def delete_transaction(self, transaction_id: int) -> bool:
        if await self.transactions.exists_by_id(transaction_id):
            await self.transactions.delete_by_id(transaction_id)
            return True
        return False
