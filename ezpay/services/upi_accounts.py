"""
UPI account management.
"""

import re
from datetime import datetime, timezone
from typing import List, Optional

from ezpay.db.models import UPIAccount
from ezpay.db.repositories import UPIAccountRepository
from ezpay.exceptions import AccountNotFoundError, InvalidFormatError
from ezpay.logging_config import get_logger
from ezpay.security import PinHasher
from ezpay.services.ledger import UPILedger

logger = get_logger("ezpay.services.upi_accounts")

UPI_ID_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+@[a-zA-Z]{2,}$")


def is_valid_upi_id(upi_id: Optional[str]) -> bool:
    return upi_id is not None and UPI_ID_PATTERN.fullmatch(upi_id) is not None


class UPIAccountService:
    def __init__(self, accounts: UPIAccountRepository, ledger: UPILedger, pin_hasher: Optional[PinHasher] = None):
        self.accounts = accounts
        self.ledger = ledger
        self.pin_hasher = pin_hasher or PinHasher()

    async def create_account(self, upi_id: str, balance: int, pin: str, is_active: bool = True) -> UPIAccount:
        if not is_valid_upi_id(upi_id):
            raise InvalidFormatError("Invalid UPI ID format.")

        account = UPIAccount(
            upi_id=upi_id,
            balance=balance,
            pin_hash=self.pin_hasher.hash(pin),
            is_active=is_active,
            created_at=datetime.now(timezone.utc),
            version=0,
        )
        saved = await self.accounts.save(account)
        logger.info("Created UPI account id=%s upi_id=%s", saved.id, saved.upi_id)
        return saved

    async def get_all(self) -> List[UPIAccount]:
        return await self.accounts.find_all()

    async def get_by_upi_id(self, upi_id: str) -> Optional[UPIAccount]:
        return await self.accounts.find_by_upi_id(upi_id)

    async def update_balance(self, upi_id: str, new_balance: int) -> UPIAccount:
        """
        Overwrite the balance of an account (administrative top-up/correction).
        """
        account = await self.accounts.find_by_upi_id(upi_id)
        if account is None:
            raise AccountNotFoundError(f"Account not found for UPI ID: {upi_id}")

        async with self.ledger.hold(account):
            await self.accounts.update_balance(account, new_balance)
            await self.accounts.commit()
        logger.info("Balance set upi_id=%s balance=%s", upi_id, new_balance)
        return account

    async def delete_account(self, upi_id: str) -> None:
        account = await self.accounts.find_by_upi_id(upi_id)
        if account is not None:
            await self.accounts.delete(account)
            logger.info("Deleted UPI account upi_id=%s", upi_id)
