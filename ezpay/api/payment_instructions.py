from typing import List

from fastapi import APIRouter, Depends, Query

from ezpay.db.models import InstructionStatus
from ezpay.logging_config import get_logger
from ezpay.services.payment_instructions import PaymentInstructionService
from .deps import get_payment_instruction_service
from .schemas import InstructionCreate, InstructionOut
from .serializers import serialize_instruction

logger = get_logger("ezpay.api.payment_instructions")

router = APIRouter(prefix="/payment-instructions", tags=["payment-instructions"])


@router.get("", response_model=List[InstructionOut])
async def list_instructions(service: PaymentInstructionService = Depends(get_payment_instruction_service)):
    return [serialize_instruction(i) for i in await service.get_all()]


@router.get("/account-holder", response_model=List[InstructionOut])
async def list_for_account_holder(
    username: str = Query(...),
    service: PaymentInstructionService = Depends(get_payment_instruction_service),
):
    holder = await service.account_holders.get_by_username(username)
    return [serialize_instruction(i) for i in await service.get_by_account_holder(holder.id)]


@router.post("/account-holder/beneficiary/{beneficiary_id}", response_model=InstructionOut, status_code=201)
async def create_instruction(
    beneficiary_id: int,
    payload: InstructionCreate,
    username: str = Query(...),
    service: PaymentInstructionService = Depends(get_payment_instruction_service),
):
    """
    Create a DRAFT instruction from the caller to one of their beneficiaries.
    """
    instruction = await service.create_instruction(username, beneficiary_id, payload.amount, payload.remarks)
    return serialize_instruction(instruction)


@router.delete("/account-holder/instruction/{instruction_id}")
async def delete_instruction(
    instruction_id: int,
    username: str = Query(...),
    service: PaymentInstructionService = Depends(get_payment_instruction_service),
):
    holder = await service.account_holders.get_by_username(username)
    await service.delete(instruction_id, holder)
    return {"message": "Payment instruction deleted successfully"}


@router.get("/status/{status}", response_model=List[InstructionOut])
async def list_by_status(
    status: InstructionStatus,
    service: PaymentInstructionService = Depends(get_payment_instruction_service),
):
    return [serialize_instruction(i) for i in await service.get_by_status(status)]


@router.get("/account-holder/status/{status}", response_model=List[InstructionOut])
async def list_for_account_holder_by_status(
    status: InstructionStatus,
    username: str = Query(...),
    service: PaymentInstructionService = Depends(get_payment_instruction_service),
):
    holder = await service.account_holders.get_by_username(username)
    return [serialize_instruction(i) for i in await service.get_by_account_holder_and_status(holder.id, status)]


@router.put("/account-holder/instruction/{instruction_id}/status/{status}", response_model=InstructionOut)
async def update_status(
    instruction_id: int,
    status: InstructionStatus,
    username: str = Query(...),
    service: PaymentInstructionService = Depends(get_payment_instruction_service),
):
    holder = await service.account_holders.get_by_username(username)
    logger.info("Status change instruction=%s -> %s by username=%s", instruction_id, status.value, username)
    return serialize_instruction(await service.update_status(instruction_id, holder, status))


@router.put("/account-holder/instruction/{instruction_id}/execute", response_model=InstructionOut)
async def execute_mock_transfer(
    instruction_id: int,
    username: str = Query(...),
    guard_settled: bool = Query(False),
    service: PaymentInstructionService = Depends(get_payment_instruction_service),
):
    """
    Run the simulated bank transfer. ``guard_settled=true`` makes a repeat
    call on a SUCCESS/CANCELLED instruction a no-op.
    """
    holder = await service.account_holders.get_by_username(username)
    instruction = await service.perform_mock_transfer(instruction_id, holder, guard_settled=guard_settled)
    return serialize_instruction(instruction)
