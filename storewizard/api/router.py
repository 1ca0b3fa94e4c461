from fastapi import APIRouter
from storewizard.api.auth import router as auth_router
from storewizard.api.catalog import router as catalog_router
from storewizard.api.chat import router as chat_router
from storewizard.api.marketing import router as marketing_router
from storewizard.api.merchants import router as merchants_router
from storewizard.api.sessions import router as sessions_router

router = APIRouter()
router.include_router(merchants_router)
router.include_router(auth_router)
router.include_router(sessions_router)
router.include_router(chat_router)
router.include_router(catalog_router)
router.include_router(marketing_router)
