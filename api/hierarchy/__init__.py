"""
Org-hierarchy rollup: reporting subtree reconstruction and aggregation.

- tree.py: pure in-memory build + rollup (no I/O)
- repository.py: raw SQL for subtree rows and the employee directory
- service.py: glue between the two, plus HTTP-level errors
- router.py: FastAPI endpoints
"""
