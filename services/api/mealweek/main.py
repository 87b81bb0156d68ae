# MealWeek API Main Entry Point
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .settings import settings
from .limits import limiter
from .routers.ready import router as ready_router
from .routers.users import router as users_router
from .routers.dishes import router as dishes_router
from .routers.notes import router as notes_router

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger("mealweek")


@asynccontextmanager
async def lifespan(app: FastAPI):
    search = "enabled" if settings.google_api_key and settings.google_search_cx else "disabled (stock photos only)"
    logger.info(f"MealWeek API starting: image search {search}, identity header {settings.identity_header}")
    if settings.rate_limit_enabled:
        logger.info(f"Dish creation limited to {settings.dish_create_rate_limit} per client")
    yield
    logger.info("MealWeek API shutting down")


app = FastAPI(title="MealWeek API", version="0.1.0", lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(ready_router, prefix="/api", tags=["ready"])
app.include_router(users_router, prefix="/api")
app.include_router(dishes_router, prefix="/api", tags=["dishes"])
app.include_router(notes_router, prefix="/api", tags=["notes"])
