"""
API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import auth, users

api_router = APIRouter()

# Registration & login
api_router.include_router(auth.router)

# User listing, lookup and mutations
api_router.include_router(users.router)
