"""
Core utilities shared across the contact manager API.

This package hosts configuration, structured logging, password hashing and
small helpers. Services depend on these primitives instead of importing
FastAPI or storage layers directly.
"""
