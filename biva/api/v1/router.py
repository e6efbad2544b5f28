from fastapi import APIRouter

from biva.api.routers import auth, contracts, notifications, properties, roles, users, visits

api_router = APIRouter()

api_router.include_router(roles.router)
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(properties.router)
api_router.include_router(visits.router)
api_router.include_router(contracts.router)
api_router.include_router(notifications.router)
