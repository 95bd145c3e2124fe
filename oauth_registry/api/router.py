from fastapi import APIRouter
from oauth_registry.api import clients

api_router = APIRouter()

api_router.include_router(clients.router, prefix="/app", tags=["clients"])
