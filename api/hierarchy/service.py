"""
Hierarchy business logic.

Scope:
- fetch the reporting subtree rows for one employee (repository)
- build and roll up the tree (tree.py, pure)
- turn "nothing found" into HTTP errors; the tree code itself never raises
  for bad data
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException

from . import repository, tree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rollup:
    tree: dict[str, Any]
    employee_count: int
    dropped_count: int


def individual_contributor_roles() -> frozenset[str]:
    raw = os.environ.get("INDIVIDUAL_CONTRIBUTOR_ROLES", "")
    roles = {part.strip() for part in raw.split(",") if part.strip()}
    return frozenset(roles) if roles else tree.DEFAULT_INDIVIDUAL_CONTRIBUTOR_ROLES


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def record_to_row(record: dict[str, Any]) -> tree.Row:
    sales = record.get("sales")
    return tree.Row(
        emp_code=str(record["emp_code"]),
        emp_name=str(record.get("emp_name") or ""),
        role=record.get("role") or None,
        manager_name=_optional_str(record.get("reporting_manager")),
        manager_code=_optional_str(record.get("reporting_manager_code")),
        territory=record.get("territory") or None,
        coverage=tree.to_number(record.get("amount")),
        product_name=_optional_str(record.get("product_name")),
        sales=tree.to_number(sales) if sales is not None else None,
    )


def build_rollup(
    root_name: str,
    records: list[dict[str, Any]],
    *,
    root_code: str | None = None,
    include_sales: bool = False,
) -> Rollup:
    rows = [record_to_row(r) for r in records]
    result = tree.build_tree(
        root_name,
        rows,
        root_code=root_code,
        ic_roles=individual_contributor_roles(),
    )
    if not result.roots:
        raise HTTPException(status_code=404, detail="Employee not found.")

    try:
        tree.aggregate_roots(result.roots)
    except tree.HierarchyCycleError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    if result.dropped:
        logger.warning(
            "hierarchy_rows_dropped root=%s dropped=%s codes=%s",
            root_code or root_name,
            result.dropped_count,
            ",".join(f"{d.emp_code}:{d.reason}" for d in result.dropped),
        )

    return Rollup(
        tree=tree.tree_to_dict(result.roots, include_sales=include_sales),
        employee_count=len(result.nodes) - result.dropped_count,
        dropped_count=result.dropped_count,
    )


async def rollup_for_employee(emp_name: str, *, include_sales: bool = False) -> Rollup:
    emp_name = (emp_name or "").strip()
    if not emp_name:
        raise HTTPException(status_code=400, detail="Employee name is required.")

    records = await repository.fetch_subtree_rows(emp_name)
    return build_rollup(emp_name, records, include_sales=include_sales)


async def rollup_for_employee_code(emp_code: str, *, include_sales: bool = False) -> Rollup:
    emp_code = (emp_code or "").strip()
    if not emp_code:
        raise HTTPException(status_code=400, detail="Employee code is required.")

    records = await repository.fetch_subtree_rows_by_code(emp_code)
    return build_rollup("", records, root_code=emp_code, include_sales=include_sales)


async def list_employees() -> list[dict]:
    rows = await repository.list_employees()
    return [
        {
            "name": str(row["name"]),
            "role": _optional_str(row.get("role")),
            "emp_code": str(row["emp_code"]),
            "territory": _optional_str(row.get("territory")),
        }
        for row in rows
    ]
