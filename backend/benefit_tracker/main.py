"""Use Your Benefits - credit card benefit usage API."""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from benefit_tracker.config import get_settings
from benefit_tracker.services.card_config_loader import load_card_catalog
from benefit_tracker.store import UserBenefitsStore

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Startup: load the card catalog and open the user data document
    app.state.catalog = load_card_catalog(settings.configs_dir)
    app.state.store = UserBenefitsStore(settings.user_data_path)
    logger.info(f"Using user data at {settings.user_data_path}")

    yield


app = FastAPI(
    title=settings.app_name,
    description="Track credit card statement credits and never miss a benefit",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}


# Import and include routers
from benefit_tracker.api import benefits, cards, stats  # noqa: E402

app.include_router(cards.router, prefix="/api")
app.include_router(benefits.router, prefix="/api")
app.include_router(stats.router, prefix="/api")
