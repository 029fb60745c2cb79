from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ezpay.db.models import InstructionStatus


class AccountHolderCreate(BaseModel):
    full_name: str = Field(..., max_length=100, examples=["Muskan Sharma"])
    username: str = Field(..., max_length=50, examples=["muskan"])
    email: str = Field(..., max_length=150)
    mobile_number: str = Field(..., max_length=10)
    upi_id: str = Field(..., max_length=50, examples=["muskan@okbank"])
    # Opening balance; not editable after registration.
    balance: float = Field(0.0, ge=0)


class AccountHolderOut(BaseModel):
    id: int
    full_name: str
    username: str
    email: str
    mobile_number: str
    upi_id: str
    balance: float


class BeneficiaryCreate(BaseModel):
    name: str = Field(..., max_length=100)
    account_number: Optional[str] = Field(None, max_length=20)
    bank_name: Optional[str] = None
    ifsc: Optional[str] = Field(None, max_length=11)
    email: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=10)


class BeneficiaryUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    account_number: Optional[str] = Field(None, max_length=20)
    bank_name: Optional[str] = None
    ifsc: Optional[str] = Field(None, max_length=11)
    email: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=10)


class BeneficiaryOut(BaseModel):
    id: int
    account_holder_id: int
    name: str
    account_number: Optional[str] = None
    bank_name: Optional[str] = None
    ifsc: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class InstructionCreate(BaseModel):
    amount: float = Field(..., gt=0, examples=[250.0])
    remarks: Optional[str] = Field(None, max_length=250)
    # Accepted for compatibility and ignored: new instructions start in DRAFT.
    status: Optional[InstructionStatus] = None


class InstructionOut(BaseModel):
    id: int
    account_holder_id: int
    beneficiary_id: Optional[int] = None
    amount: float
    status: InstructionStatus
    remarks: Optional[str] = None


class UPIAccountCreate(BaseModel):
    upi_id: str = Field(..., examples=["aziz@upi"])
    balance: int = Field(0, ge=0)
    pin: str = Field(..., min_length=4, max_length=6)
    is_active: bool = True


class UPIBalanceUpdate(BaseModel):
    balance: int


class UPIAccountOut(BaseModel):
    id: int
    upi_id: str
    balance: int
    is_active: bool
    created_at: Optional[datetime] = None


class UPITransactionCreate(BaseModel):
    sender_upi_id: str
    receiver_upi_id: str
    # Validated by the transaction engine so the error message is the domain one.
    amount: Optional[int] = None


class UPITransactionOut(BaseModel):
    id: int
    sender_upi_id: str
    receiver_upi_id: str
    amount: int
    status: str
    timestamp: Optional[datetime] = None


class PinVerifyRequest(BaseModel):
    pin: str

