from typing import List

from fastapi import APIRouter, Depends, Query

from ezpay.db.models import Beneficiary
from ezpay.logging_config import get_logger
from ezpay.services.account_holders import AccountHolderService
from ezpay.services.beneficiaries import BeneficiaryService
from .deps import get_account_holder_service, get_beneficiary_service
from .schemas import BeneficiaryCreate, BeneficiaryOut, BeneficiaryUpdate
from .serializers import serialize_beneficiary

logger = get_logger("ezpay.api.beneficiaries")

router = APIRouter(prefix="/beneficiaries", tags=["beneficiaries"])


@router.get("", response_model=List[BeneficiaryOut])
async def list_beneficiaries(service: BeneficiaryService = Depends(get_beneficiary_service)):
    return [serialize_beneficiary(b) for b in await service.get_all()]


@router.get("/account-holder", response_model=List[BeneficiaryOut])
async def list_for_account_holder(
    username: str = Query(...),
    holders: AccountHolderService = Depends(get_account_holder_service),
    service: BeneficiaryService = Depends(get_beneficiary_service),
):
    holder = await holders.get_by_username(username)
    return [serialize_beneficiary(b) for b in await service.get_by_account_holder(holder)]


@router.post("/account-holder", response_model=BeneficiaryOut, status_code=201)
async def add_beneficiary(
    payload: BeneficiaryCreate,
    username: str = Query(...),
    holders: AccountHolderService = Depends(get_account_holder_service),
    service: BeneficiaryService = Depends(get_beneficiary_service),
):
    holder = await holders.get_by_username(username)
    logger.info("Adding beneficiary name=%s for username=%s", payload.name, username)
    beneficiary = await service.save(Beneficiary(**payload.model_dump()), holder)
    return serialize_beneficiary(beneficiary)


@router.put("/account-holder/beneficiary/{beneficiary_id}", response_model=BeneficiaryOut)
async def update_beneficiary(
    beneficiary_id: int,
    payload: BeneficiaryUpdate,
    username: str = Query(...),
    holders: AccountHolderService = Depends(get_account_holder_service),
    service: BeneficiaryService = Depends(get_beneficiary_service),
):
    holder = await holders.get_by_username(username)
    updated = await service.update(beneficiary_id, holder, payload.model_dump(exclude_none=True))
    return serialize_beneficiary(updated)


@router.delete("/account-holder/beneficiary/{beneficiary_id}")
async def delete_beneficiary(
    beneficiary_id: int,
    username: str = Query(...),
    holders: AccountHolderService = Depends(get_account_holder_service),
    service: BeneficiaryService = Depends(get_beneficiary_service),
):
    holder = await holders.get_by_username(username)
    await service.delete(beneficiary_id, holder)
    return {"message": "Beneficiary deleted successfully"}


@router.get("/{beneficiary_id}", response_model=BeneficiaryOut)
async def get_beneficiary(beneficiary_id: int, service: BeneficiaryService = Depends(get_beneficiary_service)):
    return serialize_beneficiary(await service.get_by_id(beneficiary_id))
