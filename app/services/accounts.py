"""Account operations: read, decide, compare-and-swap write, under a deadline."""

import asyncio
from typing import Awaitable, Callable, TypeVar

import structlog

from app.core.exceptions import ConflictError, DeadlineExceededError
from app.core.logging import get_logger
from app.services import account_engine as engine
from app.services.account_engine import CreditDecision, CustomerAccount, LimitDecision
from app.storage.base import CustomerStore, WriteConflict

T = TypeVar("T")


class AccountService:
    def __init__(
        self,
        store: CustomerStore,
        timeout_seconds: float = 1.0,
        max_write_attempts: int = 10,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self._store = store
        self._timeout = timeout_seconds
        self._max_write_attempts = max_write_attempts
        self._log = logger or get_logger(__name__)

    async def get_account(self, customer_id: str) -> CustomerAccount:
        engine.validate_customer_id(customer_id)

        async def run() -> CustomerAccount:
            stored = await self._store.find_by_customer_id(customer_id)
            return engine.lookup(customer_id, stored.account if stored else None)

        return await self._with_deadline(run(), "lookup", customer_id)

    async def set_limit(self, customer_id: str, limit: int) -> LimitDecision:
        """Create the account or change its limit.

        Raises LimitBelowCreditError without writing when ``limit`` is below
        the current credit.
        """
        engine.validate_customer_id(customer_id)
        engine.validate_positive("limit", limit)

        async def attempt() -> LimitDecision:
            stored = await self._store.find_by_customer_id(customer_id)
            decision = engine.set_limit(customer_id, stored.account if stored else None, limit)
            if decision.changed:
                await self._store.put(decision.account, stored.version if stored else None)
            return decision

        decision = await self._with_deadline(
            self._retry_on_conflict(attempt, customer_id), "set_limit", customer_id
        )
        self._log.info(
            "limit_set",
            customer_id=customer_id,
            limit=decision.account.limit,
            credit=decision.account.credit,
            created=decision.created,
        )
        return decision

    async def request_credit(self, customer_id: str, units: int) -> CreditDecision:
        """Consume credit for ``units``; a decision with accepted=False never writes."""
        engine.validate_customer_id(customer_id)
        engine.validate_positive("number", units)

        async def attempt() -> CreditDecision:
            stored = await self._store.find_by_customer_id(customer_id)
            decision = engine.request_credit(customer_id, stored.account if stored else None, units)
            if decision.accepted:
                await self._store.put(decision.account, stored.version)
            return decision

        decision = await self._with_deadline(
            self._retry_on_conflict(attempt, customer_id), "request_credit", customer_id
        )
        self._log.info(
            "credit_requested",
            customer_id=customer_id,
            number=units,
            accepted=decision.accepted,
            credit=decision.account.credit,
        )
        return decision

    async def _retry_on_conflict(self, attempt: Callable[[], Awaitable[T]], customer_id: str) -> T:
        for n in range(1, self._max_write_attempts + 1):
            try:
                return await attempt()
            except WriteConflict:
                self._log.info("write_conflict", customer_id=customer_id, attempt=n)
        raise ConflictError(
            "Account was modified concurrently, retry the request",
            details={"customer_id": customer_id, "attempts": self._max_write_attempts},
        )

    async def _with_deadline(self, coro: Awaitable[T], operation: str, customer_id: str) -> T:
        try:
            return await asyncio.wait_for(coro, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            self._log.warning(
                "operation_timeout", operation=operation, customer_id=customer_id, timeout=self._timeout
            )
            raise DeadlineExceededError() from exc
