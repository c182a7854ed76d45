from beanie import Document, Indexed
from pydantic import Field


class Customer(Document):
    """Per-customer credit/limit record; version guards concurrent writes."""
    customer_id: Indexed(str, unique=True)
    credit: int = Field(default=0, ge=0)
    limit: int = Field(default=0, ge=0)
    version: int = 1

    class Settings:
        name = "customers"
