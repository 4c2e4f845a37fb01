from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make api/ modules importable when running tests from the repo root.
API_ROOT = Path(__file__).resolve().parents[1] / "api"
if str(API_ROOT) not in sys.path:
    sys.path.insert(0, str(API_ROOT))

from hierarchy import tree  # noqa: E402


def make_row(
    emp_code: str,
    emp_name: str,
    *,
    role: str | None = "BE",
    manager: str | None = None,
    manager_code: str | None = None,
    territory: str | None = None,
    coverage: float = 0,
    product: str | None = None,
    sales: float | None = None,
) -> tree.Row:
    return tree.Row(
        emp_code=emp_code,
        emp_name=emp_name,
        role=role,
        manager_name=manager,
        manager_code=manager_code,
        territory=territory,
        coverage=coverage,
        product_name=product,
        sales=sales,
    )


@pytest.fixture
def row():
    return make_row


@pytest.fixture
def two_reports_rows() -> list[tree.Row]:
    # A manages B (80 coverage, two sales lines) and C (40 coverage, no sales).
    return [
        make_row("E1", "A", role="ABM", territory="North"),
        make_row("E2", "B", manager="A", manager_code="E1", territory="N-1", coverage=80, product="P1", sales=50),
        make_row("E2", "B", manager="A", manager_code="E1", territory="N-1", coverage=80, product="P2", sales=30),
        make_row("E3", "C", manager="A", manager_code="E1", territory="N-2", coverage=40),
    ]
