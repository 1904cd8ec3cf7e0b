from fastapi import FastAPI
import logging

from termiplay.api.routes import router
from termiplay.infra.settings import get_settings

app = FastAPI(title="termiplay", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "termiplay", "version": "0.1.0"}
