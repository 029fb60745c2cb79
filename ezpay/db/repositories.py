# ezpay/db/repositories.py
"""
Keyed-store repositories over an AsyncSession, one per entity.

``find_*`` methods return ``None`` (or an empty list) on absence; turning
absence into a domain error is the services' job.

Balances are never written through ``save``: ``update_balance`` issues a
conditional UPDATE guarded by the row's ``version`` and raises
``ConcurrentUpdateError`` when another writer got there first. It does not
commit, so the balance change lands together with the next ``save`` of the
same unit of work.
"""

from typing import Generic, List, Optional, Type, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ezpay.db.models import (
    AccountHolder,
    Beneficiary,
    InstructionStatus,
    PaymentInstruction,
    UPIAccount,
    UPITransaction,
)
from ezpay.exceptions import ConcurrentUpdateError

T = TypeVar("T")


class Repository(Generic[T]):
    model: Type[T]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def save(self, entity: T) -> T:
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def find_by_id(self, entity_id) -> Optional[T]:
        return await self.session.get(self.model, entity_id)

    async def find_all(self) -> List[T]:
        res = await self.session.execute(select(self.model).order_by(self.model.id))
        return list(res.scalars().all())

    async def exists_by_id(self, entity_id) -> bool:
        stmt = select(func.count()).select_from(self.model).where(self.model.id == entity_id)
        res = await self.session.execute(stmt)
        return (res.scalar_one() or 0) > 0

    async def delete(self, entity: T) -> None:
        await self.session.delete(entity)
        await self.session.commit()

    async def delete_by_id(self, entity_id) -> None:
        await self.session.execute(
            delete(self.model)
            .where(self.model.id == entity_id)
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()

    async def refresh(self, entity: T) -> T:
        await self.session.refresh(entity)
        return entity

    async def commit(self) -> None:
        await self.session.commit()

    async def _find_one(self, *criteria) -> Optional[T]:
        res = await self.session.execute(select(self.model).where(*criteria))
        return res.scalars().first()

    async def _find_many(self, *criteria) -> List[T]:
        res = await self.session.execute(
            select(self.model).where(*criteria).order_by(self.model.id)
        )
        return list(res.scalars().all())

    async def _compare_and_set_balance(self, entity, new_balance) -> None:
        stmt = (
            update(self.model)
            .where(self.model.id == entity.id, self.model.version == entity.version)
            .values(balance=new_balance, version=self.model.version + 1)
            .execution_options(synchronize_session=False)
        )
        res = await self.session.execute(stmt)
        if res.rowcount != 1:
            raise ConcurrentUpdateError(
                f"{self.model.__name__} {entity.id} was modified concurrently; retry the operation"
            )
        await self.session.refresh(entity)


class AccountHolderRepository(Repository[AccountHolder]):
    model = AccountHolder

    async def find_by_username(self, username: str) -> Optional[AccountHolder]:
        return await self._find_one(AccountHolder.username == username)

    async def find_by_upi_id(self, upi_id: str) -> Optional[AccountHolder]:
        return await self._find_one(AccountHolder.upi_id == upi_id)

    async def update_balance(self, holder: AccountHolder, new_balance: float) -> AccountHolder:
        await self._compare_and_set_balance(holder, new_balance)
        return holder


class BeneficiaryRepository(Repository[Beneficiary]):
    model = Beneficiary

    async def find_by_owner(self, account_holder_id: int) -> List[Beneficiary]:
        return await self._find_many(Beneficiary.account_holder_id == account_holder_id)

    async def find_by_id_and_owner(
        self, beneficiary_id: int, account_holder_id: int
    ) -> Optional[Beneficiary]:
        return await self._find_one(
            Beneficiary.id == beneficiary_id,
            Beneficiary.account_holder_id == account_holder_id,
        )

    async def delete_by_owner(self, account_holder_id: int) -> None:
        await self.session.execute(
            delete(Beneficiary)
            .where(Beneficiary.account_holder_id == account_holder_id)
            .execution_options(synchronize_session=False)
        )


class PaymentInstructionRepository(Repository[PaymentInstruction]):
    model = PaymentInstruction

    async def find_by_owner(self, account_holder_id: int) -> List[PaymentInstruction]:
        return await self._find_many(PaymentInstruction.account_holder_id == account_holder_id)

    async def find_by_id_and_owner(
        self, instruction_id: int, account_holder_id: int
    ) -> Optional[PaymentInstruction]:
        return await self._find_one(
            PaymentInstruction.id == instruction_id,
            PaymentInstruction.account_holder_id == account_holder_id,
        )

    async def find_by_status(self, status: InstructionStatus) -> List[PaymentInstruction]:
        return await self._find_many(PaymentInstruction.status == status)

    async def find_by_owner_and_status(
        self, account_holder_id: int, status: InstructionStatus
    ) -> List[PaymentInstruction]:
        return await self._find_many(
            PaymentInstruction.account_holder_id == account_holder_id,
            PaymentInstruction.status == status,
        )

    async def delete_by_owner(self, account_holder_id: int) -> None:
        await self.session.execute(
            delete(PaymentInstruction)
            .where(PaymentInstruction.account_holder_id == account_holder_id)
            .execution_options(synchronize_session=False)
        )


class UPIAccountRepository(Repository[UPIAccount]):
    model = UPIAccount

    async def find_by_upi_id(self, upi_id: str) -> Optional[UPIAccount]:
        return await self._find_one(UPIAccount.upi_id == upi_id)

    async def update_balance(self, account: UPIAccount, new_balance: int) -> UPIAccount:
        await self._compare_and_set_balance(account, new_balance)
        return account


class UPITransactionRepository(Repository[UPITransaction]):
    model = UPITransaction

    async def find_by_status(self, status: str) -> List[UPITransaction]:
        return await self._find_many(UPITransaction.status == status)

    async def find_by_receiver_upi_id(self, upi_id: str) -> List[UPITransaction]:
        return await self._find_many(UPITransaction.receiver_upi_id == upi_id)

    async def transition_status(self, transaction: UPITransaction, expected: str, new_status: str) -> bool:
        """
        Move ``transaction`` to ``new_status`` only if it is still ``expected``.
        Returns False when another writer changed the status first. Does not commit.
        """
        stmt = (
            update(UPITransaction)
            .where(UPITransaction.id == transaction.id, UPITransaction.status == expected)
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        res = await self.session.execute(stmt)
        if res.rowcount != 1:
            return False
        await self.session.refresh(transaction)
        return True
