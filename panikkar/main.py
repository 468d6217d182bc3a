import panikkar.logging_config
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from panikkar.api.v1.webhook import router as webhook_router, conversation_manager
from panikkar.core.config import get_settings
from panikkar.core.timezone_helper import TimezoneHelper

logger = logging.getLogger(__name__)
logger.info(
    f"[TIMEZONE] Using {get_settings().TIMEZONE}. "
    f"Local time: {TimezoneHelper.now().strftime('%d/%m/%Y %H:%M:%S %Z')}"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await conversation_manager.close()


app = FastAPI(title="Njaanum Panikkar – WhatsApp", lifespan=lifespan)

app.include_router(webhook_router)

@app.get("/")
async def root():
    return {"message": "Njaanum Panikkar – WhatsApp"}
