"""Shared FastAPI dependencies."""

from fastapi import Request

from app.services.accounts import AccountService


def get_account_service(request: Request) -> AccountService:
    """Dependency: AccountService built at startup and kept on app.state."""
    return request.app.state.account_service
