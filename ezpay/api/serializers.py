from typing import Any, Dict

from ezpay.db.models import AccountHolder, Beneficiary, PaymentInstruction, UPIAccount, UPITransaction


def serialize_account_holder(h: AccountHolder) -> Dict[str, Any]:
    return {
        "id": h.id,
        "full_name": h.full_name,
        "username": h.username,
        "email": h.email,
        "mobile_number": h.mobile_number,
        "upi_id": h.upi_id,
        "balance": float(h.balance) if h.balance is not None else 0.0,
    }


def serialize_beneficiary(b: Beneficiary) -> Dict[str, Any]:
    return {
        "id": b.id,
        "account_holder_id": b.account_holder_id,
        "name": b.name,
        "account_number": b.account_number,
        "bank_name": b.bank_name,
        "ifsc": b.ifsc,
        "email": b.email,
        "phone": b.phone,
    }


def serialize_instruction(i: PaymentInstruction) -> Dict[str, Any]:
    return {
        "id": i.id,
        "account_holder_id": i.account_holder_id,
        "beneficiary_id": i.beneficiary_id,
        "amount": float(i.amount) if i.amount is not None else None,
        "status": i.status.value if i.status is not None else None,
        "remarks": i.remarks,
    }


def serialize_upi_account(a: UPIAccount) -> Dict[str, Any]:
    # pin_hash stays server-side
    return {
        "id": a.id,
        "upi_id": a.upi_id,
        "balance": a.balance,
        "is_active": bool(a.is_active),
        "created_at": a.created_at.isoformat() if getattr(a, "created_at", None) else None,
    }


def serialize_upi_transaction(t: UPITransaction) -> Dict[str, Any]:
    return {
        "id": t.id,
        "sender_upi_id": t.sender_upi_id,
        "receiver_upi_id": t.receiver_upi_id,
        "amount": t.amount,
        "status": t.status,
        "timestamp": t.timestamp.isoformat() if t.timestamp else None,
    }
