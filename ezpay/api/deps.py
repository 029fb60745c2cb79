from typing import AsyncGenerator

from fastapi import Depends

from ezpay.db.repositories import (
    AccountHolderRepository,
    BeneficiaryRepository,
    PaymentInstructionRepository,
    UPIAccountRepository,
    UPITransactionRepository,
)
from ezpay.db.session import AsyncSessionLocal
from ezpay.security import PinHasher
from ezpay.services.account_holders import AccountHolderService
from ezpay.services.beneficiaries import BeneficiaryService
from ezpay.services.ledger import HolderLedger, UPILedger
from ezpay.services.payment_instructions import PaymentInstructionService
from ezpay.services.upi_accounts import UPIAccountService
from ezpay.services.upi_transactions import UPITransactionService

_pin_hasher = PinHasher()


async def get_db() -> AsyncGenerator:
    """
    Async DB session dependency for FastAPI routes.
    """
    async with AsyncSessionLocal() as session:
        yield session


def get_account_holder_service(db=Depends(get_db)) -> AccountHolderService:
    return AccountHolderService(
        AccountHolderRepository(db),
        BeneficiaryRepository(db),
        PaymentInstructionRepository(db),
    )


def get_beneficiary_service(db=Depends(get_db)) -> BeneficiaryService:
    return BeneficiaryService(BeneficiaryRepository(db))


def get_payment_instruction_service(
    db=Depends(get_db),
    account_holders: AccountHolderService = Depends(get_account_holder_service),
) -> PaymentInstructionService:
    return PaymentInstructionService(
        PaymentInstructionRepository(db),
        BeneficiaryRepository(db),
        account_holders,
        HolderLedger(account_holders.accounts),
    )


def get_upi_account_service(db=Depends(get_db)) -> UPIAccountService:
    accounts = UPIAccountRepository(db)
    return UPIAccountService(accounts, UPILedger(accounts), _pin_hasher)


def get_upi_transaction_service(db=Depends(get_db)) -> UPITransactionService:
    accounts = UPIAccountRepository(db)
    return UPITransactionService(UPITransactionRepository(db), accounts, UPILedger(accounts), _pin_hasher)
