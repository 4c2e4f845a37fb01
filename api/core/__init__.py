"""
Shared, cross-cutting code for the API.

`core/` holds small building blocks used across features (DB wiring,
settings). Keep feature-specific SQL and business logic in the
corresponding feature package (e.g. `hierarchy/`).
"""
