from contextlib import asynccontextmanager
from fastapi import FastAPI

from pivifeed.config import get_settings
from pivifeed.logging_config import configure_logging

# Routers
from pivifeed.api.routers.feed import router as feed_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Set up logging from the environment before serving requests."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)
    yield


app = FastAPI(title="Pivigames RSS", version="0.1", lifespan=lifespan)

app.include_router(feed_router)
