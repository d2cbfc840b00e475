from fastapi import APIRouter
from app.api.v1.endpoints import auth, health

api_router = APIRouter()

# Deep health check endpoints (use /health/ready for load balancers)
api_router.include_router(health.router)

# Student authentication
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
