from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

from app.core.logging import get_logger
from app.deps import get_account_service
from app.services.account_engine import MAX_AMOUNT
from app.services.accounts import AccountService

router = APIRouter()
log = get_logger(__name__)

IGNORED_FIELDS_HEADER = "X-Ignored-Fields"


class CustomerRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    customer_id: StrictStr = Field(min_length=1)

    @property
    def unknown_fields(self) -> list[str]:
        return sorted(self.model_extra or {})


class SetLimitRequest(CustomerRequest):
    limit: StrictInt = Field(gt=0, le=MAX_AMOUNT)


class CreditRequest(CustomerRequest):
    number: StrictInt = Field(gt=0, le=MAX_AMOUNT)


def _warn_unknown_fields(body: CustomerRequest, response: Response, endpoint: str) -> None:
    fields = body.unknown_fields
    if not fields:
        return
    log.warning("unknown_fields_ignored", endpoint=endpoint, customer_id=body.customer_id, fields=fields)
    response.headers[IGNORED_FIELDS_HEADER] = ",".join(fields)


@router.post("/get")
async def customer_get(
    body: CustomerRequest,
    response: Response,
    service: AccountService = Depends(get_account_service),
):
    """Return credit and limit for a customer."""
    _warn_unknown_fields(body, response, "get")
    account = await service.get_account(body.customer_id)
    return account.to_dict()


@router.post("/limit")
async def customer_limit(
    body: SetLimitRequest,
    response: Response,
    service: AccountService = Depends(get_account_service),
):
    """Set the credit limit, creating the customer on first use."""
    _warn_unknown_fields(body, response, "limit")
    decision = await service.set_limit(body.customer_id, body.limit)
    return decision.account.to_dict()


@router.post("/credit")
async def customer_credit(
    body: CreditRequest,
    response: Response,
    service: AccountService = Depends(get_account_service),
):
    """Consume 100 credit per requested unit; accepted is false when the limit would be exceeded."""
    _warn_unknown_fields(body, response, "credit")
    decision = await service.request_credit(body.customer_id, body.number)
    return decision.to_dict()
