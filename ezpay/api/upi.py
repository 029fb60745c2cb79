from typing import List

from fastapi import APIRouter, Depends

from ezpay.db.models import UPITransaction
from ezpay.exceptions import AccountNotFoundError, TransactionNotFoundError
from ezpay.logging_config import get_logger
from ezpay.services.upi_accounts import UPIAccountService
from ezpay.services.upi_transactions import UPITransactionService
from .deps import get_upi_account_service, get_upi_transaction_service
from .schemas import (
    PinVerifyRequest,
    UPIAccountCreate,
    UPIAccountOut,
    UPIBalanceUpdate,
    UPITransactionCreate,
    UPITransactionOut,
)
from .serializers import serialize_upi_account, serialize_upi_transaction

logger = get_logger("ezpay.api.upi")

router = APIRouter(prefix="/upi", tags=["upi"])


# ----------------------------------------------------------------------
# Accounts
# ----------------------------------------------------------------------
@router.get("/accounts", response_model=List[UPIAccountOut])
async def list_accounts(service: UPIAccountService = Depends(get_upi_account_service)):
    return [serialize_upi_account(a) for a in await service.get_all()]


@router.post("/accounts", response_model=UPIAccountOut, status_code=201)
async def create_account(payload: UPIAccountCreate, service: UPIAccountService = Depends(get_upi_account_service)):
    account = await service.create_account(payload.upi_id, payload.balance, payload.pin, payload.is_active)
    return serialize_upi_account(account)


@router.get("/accounts/{upi_id}", response_model=UPIAccountOut)
async def get_account(upi_id: str, service: UPIAccountService = Depends(get_upi_account_service)):
    account = await service.get_by_upi_id(upi_id)
    if account is None:
        raise AccountNotFoundError(f"Account not found for UPI ID: {upi_id}")
    return serialize_upi_account(account)


@router.put("/accounts/{upi_id}/balance", response_model=UPIAccountOut)
async def update_balance(
    upi_id: str,
    payload: UPIBalanceUpdate,
    service: UPIAccountService = Depends(get_upi_account_service),
):
    return serialize_upi_account(await service.update_balance(upi_id, payload.balance))


@router.delete("/accounts/{upi_id}")
async def delete_account(upi_id: str, service: UPIAccountService = Depends(get_upi_account_service)):
    await service.delete_account(upi_id)
    return {"message": "UPI account deleted"}


# ----------------------------------------------------------------------
# Transactions
# ----------------------------------------------------------------------
@router.get("/transactions", response_model=List[UPITransactionOut])
async def list_transactions(service: UPITransactionService = Depends(get_upi_transaction_service)):
    return [serialize_upi_transaction(t) for t in await service.get_all()]


@router.post("/transactions", response_model=UPITransactionOut, status_code=201)
async def add_transaction(
    payload: UPITransactionCreate,
    service: UPITransactionService = Depends(get_upi_transaction_service),
):
    """
    Create a PENDING transaction; money moves only after PIN verification.
    """
    logger.info(
        "UPI transaction request from=%s to=%s amount=%s",
        payload.sender_upi_id,
        payload.receiver_upi_id,
        payload.amount,
    )
    transaction = await service.add_transaction(UPITransaction(**payload.model_dump()))
    return serialize_upi_transaction(transaction)


@router.get("/transactions/status/{status}", response_model=List[UPITransactionOut])
async def list_by_status(status: str, service: UPITransactionService = Depends(get_upi_transaction_service)):
    return [serialize_upi_transaction(t) for t in await service.get_by_status(status)]


@router.get("/transactions/receiver/{upi_id}", response_model=List[UPITransactionOut])
async def list_by_receiver(upi_id: str, service: UPITransactionService = Depends(get_upi_transaction_service)):
    return [serialize_upi_transaction(t) for t in await service.get_by_receiver_upi_id(upi_id)]


@router.get("/transactions/{transaction_id}", response_model=UPITransactionOut)
async def get_transaction(transaction_id: int, service: UPITransactionService = Depends(get_upi_transaction_service)):
    transaction = await service.get_by_id(transaction_id)
    if transaction is None:
        raise TransactionNotFoundError("Transaction not found")
    return serialize_upi_transaction(transaction)


@router.post("/transactions/{transaction_id}/verify", response_model=UPITransactionOut)
async def verify_transaction(
    transaction_id: int,
    payload: PinVerifyRequest,
    service: UPITransactionService = Depends(get_upi_transaction_service),
):
    return serialize_upi_transaction(await service.verify_transaction_pin(transaction_id, payload.pin))


@router.delete("/transactions/{transaction_id}")
async def delete_transaction(
    transaction_id: int,
    service: UPITransactionService = Depends(get_upi_transaction_service),
):
    if await service.delete_transaction(transaction_id):
        return {"deleted": True, "message": "Transaction deleted"}
    raise TransactionNotFoundError("Transaction not found")
