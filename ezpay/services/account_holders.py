"""
Account holder operations: registration, lookups and the few profile fields
a holder may change after registration.

The balance is deliberately absent from the update paths here; it moves only
through ``HolderLedger`` inside the payment instruction engine.
"""

from typing import List, Optional

from ezpay.db.models import AccountHolder
from ezpay.db.repositories import (
    AccountHolderRepository,
    BeneficiaryRepository,
    PaymentInstructionRepository,
)
from ezpay.exceptions import ResourceNotFoundError
from ezpay.logging_config import get_logger

logger = get_logger("ezpay.services.account_holders")


class AccountHolderService:
    def __init__(
        self,
        accounts: AccountHolderRepository,
        beneficiaries: Optional[BeneficiaryRepository] = None,
        instructions: Optional[PaymentInstructionRepository] = None,
    ):
        self.accounts = accounts
        self.beneficiaries = beneficiaries
        self.instructions = instructions

    async def get_all(self) -> List[AccountHolder]:
        return await self.accounts.find_all()

    async def get_by_id(self, account_holder_id: int) -> AccountHolder:
        holder = await self.accounts.find_by_id(account_holder_id)
        if holder is None:
            raise ResourceNotFoundError(f"AccountHolder not found with ID: {account_holder_id}")
        return holder

    async def get_by_username(self, username: str) -> AccountHolder:
        """
        Resolve the acting account holder from a username supplied by the caller.
        """
        holder = await self.accounts.find_by_username(username)
        if holder is None:
            raise ResourceNotFoundError(f"AccountHolder not found for username: {username}")
        return holder

    async def get_by_upi_id(self, upi_id: str) -> AccountHolder:
        holder = await self.accounts.find_by_upi_id(upi_id)
        if holder is None:
            raise ResourceNotFoundError(f"AccountHolder not found for UPI ID: {upi_id}")
        return holder

    async def add(self, holder: AccountHolder) -> AccountHolder:
        """
        Register a new account holder. An opening balance may be given here;
        it cannot be changed through this service afterwards.
        """
        if holder.balance is None:
            holder.balance = 0.0
        holder.version = 0
        saved = await self.accounts.save(holder)
        logger.info("Registered account holder id=%s username=%s", saved.id, saved.username)
        return saved

    async def update_email(self, account_holder_id: int, new_email: str) -> AccountHolder:
        existing = await self.get_by_id(account_holder_id)
        existing.email = new_email
        return await self.accounts.save(existing)

    async def update_mobile_number(self, account_holder_id: int, new_mobile_number: str) -> AccountHolder:
        existing = await self.get_by_id(account_holder_id)
        existing.mobile_number = new_mobile_number
        return await self.accounts.save(existing)

    async def get_balance(self, account_holder_id: int) -> float:
        holder = await self.get_by_id(account_holder_id)
        return holder.balance

    async def delete(self, account_holder_id: int) -> None:
        """
        Delete an account holder together with their instructions and beneficiaries.
        """
        existing = await self.get_by_id(account_holder_id)
        if self.instructions is not None:
            await self.instructions.delete_by_owner(existing.id)
        if self.beneficiaries is not None:
            await self.beneficiaries.delete_by_owner(existing.id)
        await self.accounts.delete(existing)
        logger.info("Deleted account holder id=%s", account_holder_id)
