"""
Org-hierarchy tree building and rollup.

Input is the flat row set of a reporting subtree (one row per employee,
repeated once per sales line). Output is a tree of `Node`s with two
aggregates per node:

- amount: leaves keep their coverage value, managers take the rounded mean
  of their direct children's amounts
- total_sales: leaves sum their own sales lines, managers sum their
  children's totals

Nothing here does I/O. Bad input degrades to defaults instead of raising.
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

DEFAULT_INDIVIDUAL_CONTRIBUTOR_ROLES = frozenset({"BE"})

DROP_DANGLING_MANAGER = "dangling_manager"
DROP_UNREACHABLE = "unreachable"


class HierarchyCycleError(RuntimeError):
    pass


@dataclass(frozen=True)
class Row:
    emp_code: str
    emp_name: str
    role: str | None = None
    manager_name: str | None = None
    manager_code: str | None = None
    territory: str | None = None
    coverage: float = 0
    product_name: str | None = None
    sales: float | None = None


@dataclass(frozen=True)
class SalesRecord:
    product_name: str
    sales: float | None


@dataclass
class Node:
    emp_code: str
    name: str
    amount: float = 0
    territory: str | None = None
    role: str | None = None
    sales_records: list[SalesRecord] = field(default_factory=list)
    total_sales: float = 0
    children: dict[str, Node] = field(default_factory=dict)

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass(frozen=True)
class DroppedEmployee:
    emp_code: str
    name: str
    reason: str


@dataclass
class BuildResult:
    roots: dict[str, Node]
    nodes: dict[str, Node]
    dropped: list[DroppedEmployee]

    @property
    def dropped_count(self) -> int:
        return len(self.dropped)

    @property
    def root(self) -> Node | None:
        return next(iter(self.roots.values()), None)


def to_number(value: Any) -> float:
    """
    Coerce a DB value into an int/float, treating None and junk as 0.

    asyncpg hands NUMERIC columns back as Decimal.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal):
        # NUMERIC also allows 'NaN' and 'Infinity'.
        if not value.is_finite():
            return 0
        return int(value) if value == value.to_integral_value() else float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(number) if number.is_integer() else number


def round_half_up(value: float) -> int:
    if not math.isfinite(value):
        return 0
    # Decimal(str()) avoids binary artifacts such as 2.675 -> 2.67499...
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _is_individual_contributor(role: str | None, ic_roles: frozenset[str]) -> bool:
    return (role or "") in ic_roles


def build_tree(
    root_name: str,
    rows: Iterable[Row],
    *,
    root_code: str | None = None,
    ic_roles: Iterable[str] = DEFAULT_INDIVIDUAL_CONTRIBUTOR_ROLES,
) -> BuildResult:
    """
    Turn the flat rows of a reporting subtree into a linked tree.

    The root is the first employee named `root_name` (or, when `root_code`
    is given, the employee with that code). Employees whose manager is not
    in the row set are left out and listed in `BuildResult.dropped`.
    """
    rows = list(rows)
    roles = frozenset(ic_roles)

    # Pass 1: index. Sales lines accumulate, scalars are first-seen-wins.
    sales_by_code: dict[str, list[SalesRecord]] = defaultdict(list)
    first_row: dict[str, Row] = {}
    code_by_name: dict[str, str] = {}
    for row in rows:
        if row.product_name:
            sales_by_code[row.emp_code].append(SalesRecord(row.product_name, row.sales))
        if row.emp_code not in first_row:
            first_row[row.emp_code] = row
            code_by_name.setdefault(row.emp_name, row.emp_code)

    nodes: dict[str, Node] = {}
    for code, row in first_row.items():
        is_ic = _is_individual_contributor(row.role, roles)
        nodes[code] = Node(
            emp_code=code,
            name=row.emp_name,
            amount=to_number(row.coverage) if is_ic else 0,
            territory=row.territory or None,
            role=row.role or None,
            sales_records=list(sales_by_code.get(code, [])) if is_ic else [],
        )

    if root_code is None:
        root_code = code_by_name.get(root_name)
    if root_code not in nodes:
        return BuildResult(roots={}, nodes={}, dropped=[])
    root = nodes[root_code]

    # Pass 2: link each employee under its manager.
    dropped: list[DroppedEmployee] = []
    for code, row in first_row.items():
        if code == root_code:
            continue
        if row.manager_code:
            manager_code = row.manager_code
        else:
            manager_code = code_by_name.get(row.manager_name or "")
        if manager_code not in nodes or manager_code == code:
            dropped.append(DroppedEmployee(code, row.emp_name, DROP_DANGLING_MANAGER))
            continue
        _attach(nodes[manager_code], nodes[code])

    # Linked, but hanging off a dropped manager or a cycle that misses the root.
    reachable = _reachable_codes(root)
    dangling = {d.emp_code for d in dropped}
    for code, node in nodes.items():
        if code not in reachable and code not in dangling:
            dropped.append(DroppedEmployee(code, node.name, DROP_UNREACHABLE))

    return BuildResult(roots={root.name: root}, nodes=nodes, dropped=dropped)


def _attach(parent: Node, child: Node) -> None:
    key = child.name
    attempt = 1
    while key in parent.children and parent.children[key] is not child:
        suffix = child.emp_code if attempt == 1 else f"{child.emp_code} #{attempt}"
        key = f"{child.name} ({suffix})"
        attempt += 1
    parent.children[key] = child


def _reachable_codes(root: Node) -> set[str]:
    seen: set[str] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if node.emp_code in seen:
            continue
        seen.add(node.emp_code)
        stack.extend(node.children.values())
    return seen


def aggregate(node: Node) -> tuple[float, float]:
    """
    Resolve amount and total_sales for `node` and its whole subtree.

    Post-order: every child is fully resolved before its parent reads it.
    Returns (amount, total_sales) of `node`.
    """
    return _aggregate(node, set())


def _aggregate(node: Node, path: set[int]) -> tuple[float, float]:
    if id(node) in path:
        raise HierarchyCycleError(f"Reporting cycle detected at {node.name!r} ({node.emp_code}).")

    if node.is_leaf:
        node.total_sales = sum(to_number(record.sales) for record in node.sales_records)
        return node.amount, node.total_sales

    path.add(id(node))
    sum_amount: float = 0
    sum_sales: float = 0
    for child in node.children.values():
        child_amount, child_sales = _aggregate(child, path)
        sum_amount += child_amount
        sum_sales += child_sales
    path.discard(id(node))

    node.amount = round_half_up(sum_amount / len(node.children))
    node.total_sales = sum_sales
    return node.amount, node.total_sales


def aggregate_roots(roots: dict[str, Node]) -> None:
    for root in roots.values():
        aggregate(root)


def node_to_dict(node: Node, *, include_sales: bool = False) -> dict[str, Any]:
    data: dict[str, Any] = {
        "amount": node.amount,
        "territory": node.territory,
        "role": node.role,
        "totalSales": node.total_sales,
        "children": {
            key: node_to_dict(child, include_sales=include_sales)
            for key, child in node.children.items()
        },
    }
    if include_sales:
        data["salesRecords"] = [
            {"productName": record.product_name, "sales": record.sales}
            for record in node.sales_records
        ]
    return data


def tree_to_dict(roots: dict[str, Node], *, include_sales: bool = False) -> dict[str, Any]:
    return {name: node_to_dict(node, include_sales=include_sales) for name, node in roots.items()}
