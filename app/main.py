import app.logging_config
import os
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from app.api.v1.webhook import get_conversation_manager, router as webhook_router
from app.core.config import get_settings
from app.core.timezone_helper import TimezoneHelper

settings = get_settings()
os.environ['TZ'] = settings.TIMEZONE

logger = logging.getLogger(__name__)
business_time = TimezoneHelper.get_now()
logger.info(f"[TIMEZONE] Configurado timezone {settings.TIMEZONE}. Hora actual: {business_time.strftime('%d/%m/%Y %H:%M:%S %Z')}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if get_conversation_manager.cache_info().currsize:
        await get_conversation_manager().close()
        logger.info("Clientes HTTP cerrados")


app = FastAPI(title="Mercado Bot – WhatsApp", lifespan=lifespan)

app.include_router(webhook_router)

@app.get("/")
async def root():
    return {"message": "Mercado Bot – WhatsApp"}

@app.get("/health")
async def health():
    return {"status": "ok", "session_backend": settings.SESSION_BACKEND}
