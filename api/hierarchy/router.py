"""
Hierarchy API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Response

from . import schemas, service

router = APIRouter()

DROPPED_HEADER = "X-Dropped-Employees"


def _with_diagnostics(response: Response, rollup: service.Rollup) -> dict:
    response.headers[DROPPED_HEADER] = str(rollup.dropped_count)
    return rollup.tree


@router.get(
    "/hierarchy/code/{emp_code}",
    response_model=dict[str, schemas.HierarchyNodeResponse],
    response_model_exclude_unset=True,
)
async def get_hierarchy_by_code(
    emp_code: str,
    response: Response,
    include_sales: bool = Query(default=False),
) -> dict:
    """
    Same as /hierarchy/{emp}, rooted at an employee code instead of a name.
    """
    rollup = await service.rollup_for_employee_code(emp_code, include_sales=include_sales)
    return _with_diagnostics(response, rollup)


@router.get(
    "/hierarchy/{emp}",
    response_model=dict[str, schemas.HierarchyNodeResponse],
    response_model_exclude_unset=True,
)
async def get_hierarchy(
    emp: str,
    response: Response,
    include_sales: bool = Query(default=False),
) -> dict:
    """
    Reporting subtree of `emp` with coverage and sales rolled up per node.

    The number of employees left out for data-quality reasons is returned in
    the X-Dropped-Employees header.
    """
    rollup = await service.rollup_for_employee(emp, include_sales=include_sales)
    return _with_diagnostics(response, rollup)


@router.get("/employees", response_model=schemas.EmployeeListResponse)
async def list_employees() -> dict:
    employees = await service.list_employees()
    return {"employees": employees, "count": len(employees)}
