"""Account state decisions: pure functions over the current record, no I/O."""

from dataclasses import dataclass, replace

from app.core.exceptions import InvalidArgumentError, LimitBelowCreditError, NotFoundError

CREDIT_PER_UNIT = 100
# MongoDB stores 8-byte signed integers
MAX_AMOUNT = 2**63 - 1


@dataclass(frozen=True, slots=True)
class CustomerAccount:
    customer_id: str
    credit: int
    limit: int

    def to_dict(self) -> dict:
        return {"customer_id": self.customer_id, "credit": self.credit, "limit": self.limit}


@dataclass(frozen=True, slots=True)
class LimitDecision:
    account: CustomerAccount
    created: bool
    changed: bool


@dataclass(frozen=True, slots=True)
class CreditDecision:
    account: CustomerAccount
    accepted: bool

    def to_dict(self) -> dict:
        return {
            "customer_id": self.account.customer_id,
            "credit": self.account.credit,
            "accepted": self.accepted,
        }


def validate_customer_id(customer_id: str) -> None:
    if not isinstance(customer_id, str) or not customer_id:
        raise InvalidArgumentError("customer_id must be a non-empty string")


def validate_positive(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 < value <= MAX_AMOUNT:
        raise InvalidArgumentError(f"{name} must be a positive integer up to {MAX_AMOUNT}", details={"field": name})


def lookup(customer_id: str, current: CustomerAccount | None) -> CustomerAccount:
    validate_customer_id(customer_id)
    if current is None:
        raise NotFoundError(f"Customer {customer_id} not found")
    return current


def set_limit(customer_id: str, current: CustomerAccount | None, requested_limit: int) -> LimitDecision:
    """Create the account or move its limit.

    A missing account is created with zero credit. An existing account keeps
    its credit; lowering the limit below that credit raises
    ``LimitBelowCreditError`` and leaves the account untouched.
    """
    validate_customer_id(customer_id)
    validate_positive("limit", requested_limit)
    if current is None:
        account = CustomerAccount(customer_id=customer_id, credit=0, limit=requested_limit)
        return LimitDecision(account=account, created=True, changed=True)
    if requested_limit < current.credit:
        raise LimitBelowCreditError(
            customer_id=customer_id,
            credit=current.credit,
            limit=current.limit,
            requested_limit=requested_limit,
        )
    return LimitDecision(
        account=replace(current, limit=requested_limit),
        created=False,
        changed=requested_limit != current.limit,
    )


def request_credit(customer_id: str, current: CustomerAccount | None, units: int) -> CreditDecision:
    """Consume ``units * CREDIT_PER_UNIT`` credit if it fits under the limit.

    Exceeding the limit is a normal decision (``accepted=False``) and the
    returned account is the unchanged current one.
    """
    validate_customer_id(customer_id)
    validate_positive("number", units)
    if current is None:
        raise NotFoundError(f"Customer {customer_id} not found")
    requested_total = current.credit + units * CREDIT_PER_UNIT
    if requested_total > current.limit:
        return CreditDecision(account=current, accepted=False)
    return CreditDecision(account=replace(current, credit=requested_total), accepted=True)
