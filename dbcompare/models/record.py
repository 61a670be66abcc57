"""
Record Models

The synthetic business entity written to and read from every backend.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class TestRecord(BaseModel):
    """One row of the benchmark table."""

    __test__ = False  # not a pytest test class

    id: int = Field(..., description="Generator-assigned identity")
    name: str = Field(..., description="Full name")
    email: str = Field(..., description="Email address")
    age: int = Field(..., ge=0, description="Age in years")
    balance: float = Field(..., description="Monetary balance")
    created_at: datetime = Field(..., description="Creation timestamp")
    description: str = Field("", description="Free-text description")
    is_active: bool = Field(True, description="Active flag")

    def insert_params(self) -> tuple:
        """Column values in INSERT order (identity excluded)."""
        return (
            self.name,
            self.email,
            self.age,
            self.balance,
            self.created_at,
            self.description,
            self.is_active,
        )
