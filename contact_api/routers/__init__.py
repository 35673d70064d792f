"""
FastAPI routers grouped by domain (auth, profile, share, contacts, lists).

Each module exposes an APIRouter included by ``contact_api.app.create_app``.
"""
