import logging
import os

from fastapi import FastAPI

from acca_games.api.routes import router
from acca_games.assets.singleton import init_assets_for_app

APP_NAME = "acca-games"
APP_VERSION = "0.1.0"

app = FastAPI(title=APP_NAME, version=APP_VERSION)
app.include_router(router)
# Configure logging
logging.basicConfig(level=os.environ.get("ACCA_GAMES_LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def _startup() -> None:
    init_assets_for_app()
    logger.info("%s %s ready", APP_NAME, APP_VERSION)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": APP_NAME, "version": APP_VERSION}
