# ezpay/db/models.py
import enum
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Enum, Float, ForeignKey, Integer, String

from ezpay.db.session import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InstructionStatus(str, enum.Enum):
    DRAFT = "DRAFT"            # created, not yet validated
    VALIDATED = "VALIDATED"
    SUBMITTED = "SUBMITTED"    # handed to the bank, funds reserved
    SUCCESS = "SUCCESS"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class AccountHolder(Base):
    __tablename__ = "account_holders"

    id = Column("account_holder_id", Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(100), nullable=False)
    username = Column(String(50), unique=True, nullable=False)
    email = Column(String(150), unique=True, nullable=False)
    mobile_number = Column(String(10), unique=True, nullable=False)
    upi_id = Column(String(50), unique=True, nullable=False)
    # Written only through AccountHolderRepository.update_balance after creation.
    balance = Column(Float, nullable=False, default=0.0)
    version = Column(Integer, nullable=False, default=0)


class Beneficiary(Base):
    __tablename__ = "beneficiaries"

    id = Column("beneficiary_id", Integer, primary_key=True, autoincrement=True)
    account_holder_id = Column(
        Integer, ForeignKey("account_holders.account_holder_id"), nullable=False, index=True
    )
    name = Column("beneficiary_name", String(100), nullable=False)
    account_number = Column("beneficiary_account_number", String(20), nullable=True)
    bank_name = Column(String(100), nullable=True)
    ifsc = Column("ifsc_code", String(11), nullable=True)
    email = Column(String(150), nullable=True)
    phone = Column(String(10), nullable=True)


class PaymentInstruction(Base):
    __tablename__ = "payment_instructions"

    id = Column("instruction_id", Integer, primary_key=True, autoincrement=True)
    account_holder_id = Column(
        Integer, ForeignKey("account_holders.account_holder_id"), nullable=False, index=True
    )
    beneficiary_id = Column(
        Integer,
        ForeignKey("beneficiaries.beneficiary_id", ondelete="SET NULL"),
        nullable=True,
    )
    amount = Column(Float, nullable=False)
    remarks = Column(String(250), nullable=True)
    status = Column(
        Enum(InstructionStatus, native_enum=False, length=20),
        nullable=False,
        default=InstructionStatus.DRAFT,
    )


class UPIAccount(Base):
    __tablename__ = "upi_accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    upi_id = Column(String(64), unique=True, nullable=False)
    balance = Column(Integer, nullable=False, default=0)
    pin_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    version = Column(Integer, nullable=False, default=0)


class UPITransaction(Base):
    __tablename__ = "upi_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Plain UPI-id strings: resolved against upi_accounts at operation time.
    sender_upi_id = Column(String(64), nullable=False)
    receiver_upi_id = Column(String(64), nullable=False)
    amount = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="PENDING")
    timestamp = Column(DateTime(timezone=True))
