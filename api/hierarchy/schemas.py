"""
Pydantic schemas for hierarchy endpoints.

Field names on the wire follow the frontend contract (camelCase).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SalesRecordResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_name: str = Field(..., alias="productName")
    sales: int | float | None = None


class HierarchyNodeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: int | float = 0
    territory: str | None = None
    role: str | None = None
    total_sales: int | float = Field(default=0, alias="totalSales")
    children: dict[str, HierarchyNodeResponse] = Field(default_factory=dict)
    # Only present when the caller asks for include_sales.
    sales_records: list[SalesRecordResponse] | None = Field(default=None, alias="salesRecords")


class EmployeeResponse(BaseModel):
    name: str
    role: str | None = None
    emp_code: str
    territory: str | None = None


class EmployeeListResponse(BaseModel):
    employees: list[EmployeeResponse]
    count: int
