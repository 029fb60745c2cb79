"""
Payment instruction lifecycle.

An instruction is created in DRAFT and moved between statuses by
``update_status`` or settled by ``perform_mock_transfer``. Only two paths
touch the sender's balance:

- ``update_status(..., SUBMITTED)`` debits the amount, after checking the
  balance covers it;
- ``perform_mock_transfer`` debits the amount when the simulated bank
  accepts the transfer.

Both run their check and debit inside ``HolderLedger.hold`` so that two
requests against the same holder cannot both pass the balance check on the
same funds.
"""

import random
from typing import Callable, List, Optional, Union

from ezpay.config import settings
from ezpay.db.models import AccountHolder, InstructionStatus, PaymentInstruction
from ezpay.db.repositories import BeneficiaryRepository, PaymentInstructionRepository
from ezpay.exceptions import InsufficientBalanceError, ResourceNotFoundError
from ezpay.logging_config import get_logger
from ezpay.services.account_holders import AccountHolderService
from ezpay.services.ledger import HolderLedger

logger = get_logger("ezpay.services.payment_instructions")

REMARK_BENEFICIARY_NOT_FOUND = "Beneficiary not found"
REMARK_INSUFFICIENT_FUNDS = "Insufficient funds"
REMARK_INVALID_BENEFICIARY = "Invalid beneficiary details"
REMARK_SUCCESS = "Transaction successful"
REMARK_PENDING = "Transaction pending / processing by bank"

# Statuses a guarded mock transfer will not run again.
SETTLED_STATUSES = frozenset({InstructionStatus.SUCCESS, InstructionStatus.CANCELLED})


class PaymentInstructionService:
    def __init__(
        self,
        instructions: PaymentInstructionRepository,
        beneficiaries: BeneficiaryRepository,
        account_holders: AccountHolderService,
        ledger: HolderLedger,
        random_source: Callable[[], float] = random.random,
        success_threshold: Optional[float] = None,
    ):
        self.instructions = instructions
        self.beneficiaries = beneficiaries
        self.account_holders = account_holders
        self.ledger = ledger
        self.random_source = random_source
        self.success_threshold = (
            settings.mock_transfer_success_threshold if success_threshold is None else success_threshold
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    async def get_all(self) -> List[PaymentInstruction]:
        return await self.instructions.find_all()

    async def get_by_id(self, instruction_id: int) -> PaymentInstruction:
        instruction = await self.instructions.find_by_id(instruction_id)
        if instruction is None:
            raise ResourceNotFoundError(f"PaymentInstruction not found with ID: {instruction_id}")
        return instruction

    async def get_by_account_holder(self, account_holder_id: int) -> List[PaymentInstruction]:
        return await self.instructions.find_by_owner(account_holder_id)

    async def get_by_id_and_account_holder(self, instruction_id: int, holder: AccountHolder) -> PaymentInstruction:
        instruction = await self.instructions.find_by_id_and_owner(instruction_id, holder.id)
        if instruction is None:
            raise ResourceNotFoundError(
                f"PaymentInstruction ID {instruction_id} not found for AccountHolder ID: {holder.id}"
            )
        return instruction

    async def get_by_status(self, status: InstructionStatus) -> List[PaymentInstruction]:
        return await self.instructions.find_by_status(InstructionStatus(status))

    async def get_by_account_holder_and_status(
        self, account_holder_id: int, status: InstructionStatus
    ) -> List[PaymentInstruction]:
        return await self.instructions.find_by_owner_and_status(account_holder_id, InstructionStatus(status))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    async def save_instruction(self, instruction: PaymentInstruction) -> PaymentInstruction:
        """
        Persist an instruction. New instructions always start in DRAFT,
        whatever status the payload carried.
        """
        if instruction.id is None:
            instruction.status = InstructionStatus.DRAFT
        return await self.instructions.save(instruction)

    async def create_instruction(
        self,
        username: str,
        beneficiary_id: int,
        amount: float,
        remarks: Optional[str] = None,
    ) -> PaymentInstruction:
        sender = await self.account_holders.get_by_username(username)

        beneficiary = await self.beneficiaries.find_by_id_and_owner(beneficiary_id, sender.id)
        if beneficiary is None:
            raise ResourceNotFoundError(
                f"Beneficiary ID {beneficiary_id} not found for username: {username}"
            )

        instruction = PaymentInstruction(
            account_holder_id=sender.id,
            beneficiary_id=beneficiary.id,
            amount=amount,
            status=InstructionStatus.DRAFT,
            remarks=remarks,
        )
        saved = await self.instructions.save(instruction)
        logger.info(
            "Created instruction id=%s sender=%s beneficiary=%s amount=%s",
            saved.id,
            sender.id,
            beneficiary.id,
            amount,
        )
        return saved

    async def delete(self, instruction_id: int, holder: AccountHolder) -> None:
        existing = await self.get_by_id_and_account_holder(instruction_id, holder)
        await self.instructions.delete(existing)

    async def update_status(
        self,
        instruction_id: int,
        holder: AccountHolder,
        new_status: Union[InstructionStatus, str],
    ) -> PaymentInstruction:
        """
        Move an instruction to ``new_status``.

        Any status may follow any other. Moving to SUBMITTED first debits the
        instruction amount and fails with InsufficientBalanceError, changing
        nothing, when the holder cannot cover it.
        """
        # TODO: add a transition table once product decides whether arbitrary jumps are an admin override
        existing = await self.get_by_id_and_account_holder(instruction_id, holder)
        new_status = InstructionStatus(new_status)

        if new_status == InstructionStatus.SUBMITTED:
            async with self.ledger.hold(holder):
                if holder.balance < existing.amount:
                    logger.warning(
                        "Submit rejected: holder=%s balance=%s instruction=%s amount=%s",
                        holder.id,
                        holder.balance,
                        instruction_id,
                        existing.amount,
                    )
                    raise InsufficientBalanceError(
                        f"AccountHolder ID {holder.id} has insufficient balance for instruction {instruction_id}"
                    )
                await self.ledger.debit(holder, existing.amount)
                return await self._transition(existing, new_status)

        return await self._transition(existing, new_status)

    async def perform_mock_transfer(
        self,
        instruction_id: int,
        holder: AccountHolder,
        *,
        guard_settled: bool = False,
    ) -> PaymentInstruction:
        """
        Simulate settling an instruction with the beneficiary's bank.

        Checks run in order and the first failure rejects the instruction:
        missing beneficiary, insufficient funds, incomplete beneficiary
        details. Otherwise a random draw above the success threshold debits
        the holder and marks the instruction SUCCESS; anything else leaves it
        SUBMITTED with the balance untouched.

        Calling this again on a settled instruction re-runs every check and
        can debit a second time. Pass ``guard_settled=True`` to return
        SUCCESS/CANCELLED instructions unchanged instead; the guard is checked
        again once the holder is held, so concurrent guarded calls settle once.
        """
        instruction = await self.get_by_id_and_account_holder(instruction_id, holder)

        if guard_settled and instruction.status in SETTLED_STATUSES:
            logger.info("Mock transfer skipped: instruction=%s already %s", instruction.id, instruction.status.value)
            return instruction

        beneficiary = None
        if instruction.beneficiary_id is not None:
            beneficiary = await self.beneficiaries.find_by_id_and_owner(instruction.beneficiary_id, holder.id)

        if beneficiary is None:
            return await self._reject(instruction, REMARK_BENEFICIARY_NOT_FOUND)

        async with self.ledger.hold(holder):
            # another transfer on the same holder may have settled it while we waited
            await self.instructions.refresh(instruction)
            if guard_settled and instruction.status in SETTLED_STATUSES:
                logger.info("Mock transfer skipped: instruction=%s already %s", instruction.id, instruction.status.value)
                return instruction

            if holder.balance < instruction.amount:
                return await self._reject(instruction, REMARK_INSUFFICIENT_FUNDS)

            if not beneficiary.account_number or not beneficiary.ifsc:
                return await self._reject(instruction, REMARK_INVALID_BENEFICIARY)

            if self.random_source() > self.success_threshold:
                await self.ledger.debit(holder, instruction.amount)
                instruction.status = InstructionStatus.SUCCESS
                instruction.remarks = REMARK_SUCCESS
            else:
                instruction.status = InstructionStatus.SUBMITTED
                instruction.remarks = REMARK_PENDING

            logger.info(
                "Mock transfer instruction=%s holder=%s -> %s",
                instruction.id,
                holder.id,
                instruction.status.value,
            )
            return await self.instructions.save(instruction)

    async def _transition(self, instruction: PaymentInstruction, new_status: InstructionStatus) -> PaymentInstruction:
        old_status = instruction.status
        instruction.status = new_status
        saved = await self.instructions.save(instruction)
        logger.info(
            "Instruction %s: %s -> %s",
            instruction.id,
            old_status.value if old_status is not None else None,
            new_status.value,
        )
        return saved

    async def _reject(self, instruction: PaymentInstruction, remarks: str) -> PaymentInstruction:
        instruction.status = InstructionStatus.REJECTED
        instruction.remarks = remarks
        logger.warning("Mock transfer rejected: instruction=%s reason=%s", instruction.id, remarks)
        return await self.instructions.save(instruction)
