from fastapi import APIRouter

from visa_dashboard.api.routes import applicants, functions, utils

api_router = APIRouter()
api_router.include_router(applicants.router)
api_router.include_router(functions.router)
api_router.include_router(utils.router)
