"""
Stylist AI Service v1.0.0
AI-stylist orchestration: analyze, recreate, personalized shop, chat, suggest, barcode.
"""
import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from stylist_ai.app.routes import router
from stylist_ai.config import get_provider_status, validate_provider_config
from stylist_ai.cache import cache_manager, get_memory_store
from stylist_ai.db import postgres
from stylist_ai.observability import is_logging_enabled

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("=" * 50)
    logger.info("Stylist AI Service v1.0.0 Starting...")
    logger.info("=" * 50)

    db_connected = postgres.connect()
    logger.info(f"PostgreSQL: {'connected' if db_connected else 'disconnected'}")

    redis_connected = get_memory_store().ping()
    logger.info(f"Redis memory: {'connected' if redis_connected else 'disconnected'}")

    provider_status = get_provider_status()
    logger.info(f"Active LLM: {provider_status.get('active_provider') or 'none'}")
    for warning in validate_provider_config():
        logger.warning(warning)

    cache_status = cache_manager.get_status()
    logger.info(f"Cache: {'enabled' if cache_status['enabled'] else 'disabled'}")

    logger.info(f"Logging: {'enabled' if is_logging_enabled() else 'disabled'}")
    logger.info("✓ Service ready! http://localhost:8000")
    logger.info("=" * 50)

    yield

    logger.info("Service shutting down...")
    postgres.close()


app = FastAPI(
    title="Stylist AI Service",
    description="Outfit analysis, personalized recreation, shopping, chat and barcode lookup",
    version="1.0.0",
    lifespan=lifespan
)

# ==================== MIDDLEWARE ====================
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

app.include_router(router)
