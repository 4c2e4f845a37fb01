"""
Hierarchy persistence (raw SQL).

Tables:
- employee_details(emp_code, emp_name, role, reporting_manager,
  reporting_manager_code, territory)
- coverage_details(emp_code, coverage)
- sales(emp_code, product_name, sales)
"""

from __future__ import annotations

from core import db

# UNION (not UNION ALL) de-duplicates identical rows, so a cyclic manager
# chain stops expanding instead of recursing forever.
_SUBTREE_SQL = """
    WITH RECURSIVE downline AS (
        SELECT emp_code, emp_name, role, reporting_manager,
               reporting_manager_code, territory
        FROM employee_details
        WHERE {root_filter}

        UNION

        SELECT e.emp_code, e.emp_name, e.role, e.reporting_manager,
               e.reporting_manager_code, e.territory
        FROM employee_details e
        JOIN downline d ON e.reporting_manager_code = d.emp_code
    )
    SELECT d.emp_code, d.emp_name, d.role, d.reporting_manager,
           d.reporting_manager_code, d.territory,
           COALESCE(c.coverage, 0) AS amount,
           s.product_name, s.sales
    FROM downline d
    LEFT JOIN coverage_details c ON d.emp_code = c.emp_code
    LEFT JOIN sales s ON d.emp_code = s.emp_code
    ORDER BY d.emp_code, s.product_name
"""


async def fetch_subtree_rows(emp_name: str) -> list[dict]:
    """
    Return the reporting closure starting at every employee named `emp_name`.
    """
    return await db.fetch_all(_SUBTREE_SQL.format(root_filter="emp_name = $1"), emp_name)


async def fetch_subtree_rows_by_code(emp_code: str) -> list[dict]:
    return await db.fetch_all(_SUBTREE_SQL.format(root_filter="emp_code = $1"), emp_code)


async def list_employees() -> list[dict]:
    return await db.fetch_all(
        """
        SELECT emp_name AS name, role, emp_code, territory
        FROM employee_details
        ORDER BY emp_name
        """
    )
