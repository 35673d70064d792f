"""
High-level use cases for the contact manager API.

Each service module orchestrates the SQLRepository to implement business rules
(issue share codes, redeem them, provision default lists, manage items).

Routers (FastAPI endpoints) call these services instead of opening database
sessions directly.
"""
