from fastapi import APIRouter

from app.api.routes import audits, catalog

router = APIRouter()

router.include_router(catalog.router, prefix="/catalog", tags=["catalog"])
router.include_router(audits.router, prefix="/audits", tags=["audits"])
