from fastapi import APIRouter
from dbexplorer.api.endpoints import explorer

api_router = APIRouter()

# Combine all sub-routers into one
api_router.include_router(explorer.router)
