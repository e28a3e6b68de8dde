from fastapi import APIRouter

from tunelab.api.v1.datasets import router as datasets_router
from tunelab.api.v1.health import router as health_router
from tunelab.api.v1.models import router as models_router
from tunelab.api.v1.training import router as training_router

v1_router = APIRouter()

v1_router.include_router(health_router, tags=["Health"])
v1_router.include_router(datasets_router, tags=["Datasets"])
v1_router.include_router(training_router, tags=["Training"])
v1_router.include_router(models_router, tags=["Models"])
