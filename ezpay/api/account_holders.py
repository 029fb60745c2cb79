from typing import List

from fastapi import APIRouter, Depends, Query

from ezpay.db.models import AccountHolder
from ezpay.logging_config import get_logger
from ezpay.services.account_holders import AccountHolderService
from .deps import get_account_holder_service
from .schemas import AccountHolderCreate, AccountHolderOut
from .serializers import serialize_account_holder

logger = get_logger("ezpay.api.account_holders")

router = APIRouter(prefix="/account-holders", tags=["account-holders"])


@router.get("", response_model=List[AccountHolderOut])
async def list_account_holders(service: AccountHolderService = Depends(get_account_holder_service)):
    holders = await service.get_all()
    return [serialize_account_holder(h) for h in holders]


@router.post("", response_model=AccountHolderOut, status_code=201)
async def register_account_holder(
    payload: AccountHolderCreate,
    service: AccountHolderService = Depends(get_account_holder_service),
):
    """
    Register a new account holder with an optional opening balance.
    """
    logger.info("Registering account holder username=%s", payload.username)
    holder = await service.add(AccountHolder(**payload.model_dump()))
    return serialize_account_holder(holder)


@router.get("/by-username/{username}", response_model=AccountHolderOut)
async def get_account_holder_by_username(
    username: str,
    service: AccountHolderService = Depends(get_account_holder_service),
):
    return serialize_account_holder(await service.get_by_username(username))


@router.get("/{account_holder_id}", response_model=AccountHolderOut)
async def get_account_holder(
    account_holder_id: int,
    service: AccountHolderService = Depends(get_account_holder_service),
):
    return serialize_account_holder(await service.get_by_id(account_holder_id))


@router.put("/{account_holder_id}/email", response_model=AccountHolderOut)
async def update_email(
    account_holder_id: int,
    new_email: str = Query(..., max_length=150),
    service: AccountHolderService = Depends(get_account_holder_service),
):
    return serialize_account_holder(await service.update_email(account_holder_id, new_email))


@router.put("/{account_holder_id}/mobile", response_model=AccountHolderOut)
async def update_mobile(
    account_holder_id: int,
    new_mobile_number: str = Query(..., max_length=10),
    service: AccountHolderService = Depends(get_account_holder_service),
):
    return serialize_account_holder(await service.update_mobile_number(account_holder_id, new_mobile_number))


@router.delete("/{account_holder_id}")
async def delete_account_holder(
    account_holder_id: int,
    service: AccountHolderService = Depends(get_account_holder_service),
):
    await service.delete(account_holder_id)
    return {"message": "AccountHolder deleted successfully"}


@router.get("/{account_holder_id}/balance")
async def get_balance(
    account_holder_id: int,
    service: AccountHolderService = Depends(get_account_holder_service),
):
    return {"account_holder_id": account_holder_id, "balance": await service.get_balance(account_holder_id)}
