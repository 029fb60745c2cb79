"""
Beneficiary operations. Every access by id is scoped to the owning account
holder; a beneficiary that exists but belongs to someone else is reported
as not found.
"""

from typing import Any, Dict, List

from ezpay.db.models import AccountHolder, Beneficiary
from ezpay.db.repositories import BeneficiaryRepository
from ezpay.exceptions import ResourceNotFoundError
from ezpay.logging_config import get_logger

logger = get_logger("ezpay.services.beneficiaries")

UPDATABLE_FIELDS = ("name", "account_number", "bank_name", "ifsc", "email", "phone")


class BeneficiaryService:
    def __init__(self, beneficiaries: BeneficiaryRepository):
        self.beneficiaries = beneficiaries

    async def get_all(self) -> List[Beneficiary]:
        return await self.beneficiaries.find_all()

    async def get_by_id(self, beneficiary_id: int) -> Beneficiary:
        beneficiary = await self.beneficiaries.find_by_id(beneficiary_id)
        if beneficiary is None:
            raise ResourceNotFoundError(f"Beneficiary not found with ID: {beneficiary_id}")
        return beneficiary

    async def get_by_account_holder(self, holder: AccountHolder) -> List[Beneficiary]:
        return await self.beneficiaries.find_by_owner(holder.id)

    async def get_by_id_and_account_holder(self, beneficiary_id: int, holder: AccountHolder) -> Beneficiary:
        beneficiary = await self.beneficiaries.find_by_id_and_owner(beneficiary_id, holder.id)
        if beneficiary is None:
            raise ResourceNotFoundError(
                f"Beneficiary ID {beneficiary_id} not found for AccountHolder ID: {holder.id}"
            )
        return beneficiary

    async def save(self, beneficiary: Beneficiary, holder: AccountHolder) -> Beneficiary:
        beneficiary.account_holder_id = holder.id
        saved = await self.beneficiaries.save(beneficiary)
        logger.info("Saved beneficiary id=%s for account holder id=%s", saved.id, holder.id)
        return saved

    async def update(self, beneficiary_id: int, holder: AccountHolder, changes: Dict[str, Any]) -> Beneficiary:
        """
        Apply the non-null fields of ``changes`` to an owned beneficiary.
        """
        existing = await self.beneficiaries.find_by_id_and_owner(beneficiary_id, holder.id)
        if existing is None:
            raise ResourceNotFoundError("Beneficiary not found for this account holder")

        for field in UPDATABLE_FIELDS:
            value = changes.get(field)
            if value is not None:
                setattr(existing, field, value)
        return await self.beneficiaries.save(existing)

    async def delete(self, beneficiary_id: int, holder: AccountHolder) -> None:
        existing = await self.get_by_id_and_account_holder(beneficiary_id, holder)
        await self.beneficiaries.delete(existing)
        logger.info("Deleted beneficiary id=%s for account holder id=%s", beneficiary_id, holder.id)
