from fastapi import FastAPI
import logging

from player_monoids.api.routes import router
from player_monoids.app_runtime import init_runtime_for_app
from player_monoids.config import get_log_level

app = FastAPI(title="player-monoids", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=get_log_level())
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def _startup() -> None:
    runtime = init_runtime_for_app()
    logger.info("registered monoids: %s", ", ".join(runtime.registry.names()))


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "player-monoids", "version": "0.1.0"}
