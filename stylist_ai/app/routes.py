"""
API Routes for Stylist AI Service v1.0.0
Thin HTTP surface over the stylist flows.
"""
import logging
from typing import Optional, List, Dict, Any

from fastapi import APIRouter, UploadFile, File, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from stylist_ai.config import get_provider_status, get_settings
from stylist_ai.config.llm_config import get_all_configs_dict
from stylist_ai.llm import get_all_clients_status
from stylist_ai.cache import cache_manager, get_memory_store
from stylist_ai.core.errors import StylistError
from stylist_ai.core.validation import ValidationError
from stylist_ai.core.analyze import analyze_image
from stylist_ai.core.recreate import recreate_look
from stylist_ai.core.personalized_shop import personalized_shop
from stylist_ai.core.chat import chat
from stylist_ai.core.memory import forget_memory
from stylist_ai.core.suggest import suggest
from stylist_ai.db import postgres
from stylist_ai.services.barcode import decode_barcode, lookup_barcode
from stylist_ai.services.product_search import find_similar_looks
from stylist_ai.observability import get_metrics, is_logging_enabled

logger = logging.getLogger(__name__)

router = APIRouter()


# ==================== REQUEST BODIES ====================

class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ChatMessage(_Body):
    role: str
    content: str = ""


class ChatRequest(_Body):
    user_id: Optional[str] = Field(None, alias="userId")
    messages: List[ChatMessage] = Field(default_factory=list)


class SuggestRequest(_Body):
    user_id: Optional[str] = Field(None, alias="userId")
    weather: Optional[Any] = None
    location: Optional[str] = None
    occasion: Optional[str] = None
    wardrobe: Optional[List[Dict[str, Any]]] = None


class ImageRequest(_Body):
    image_url: Optional[str] = Field(None, alias="imageUrl")


class RecreateRequest(_Body):
    user_id: Optional[str] = Field(None, alias="userId")
    tags: List[str] = Field(default_factory=list)
    image_url: Optional[str] = Field(None, alias="imageUrl")
    user_gender: Optional[str] = Field(None, alias="userGender")


class ShopRequest(_Body):
    user_id: Optional[str] = Field(None, alias="userId")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    gender: Optional[str] = None


class BarcodeLookupRequest(_Body):
    upc: Optional[str] = None


def _http_error(e: StylistError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


# ==================== PUBLIC ENDPOINTS ====================

@router.get("/health")
async def health_check():
    """Health check with observability info."""
    settings = get_settings()
    metrics = get_metrics()

    return {
        "status": "ok",
        "version": "1.0.0",
        "llm": get_provider_status(),
        "llm_config": get_all_configs_dict(),
        "llm_clients": get_all_clients_status(),
        "cache": cache_manager.get_status(),
        "postgres": postgres.health_check(),
        "redis": {"connected": get_memory_store().ping()},
        "services": {
            "serpapi": bool(settings.serpapi_key),
            "rapidapi": bool(settings.rapidapi_key),
            "unsplash": bool(settings.unsplash_access_key),
        },
        "observability": {
            "logging_enabled": is_logging_enabled(),
            "total_requests": metrics["total_requests"],
            "errors": metrics["errors"],
            "error_ratio": metrics["error_ratio"],
        },
    }


@router.get("/metrics")
async def get_metrics_endpoint():
    """Get detailed metrics for monitoring."""
    return JSONResponse(content=get_metrics())


# ==================== STYLIST FLOWS ====================

@router.post("/ai/analyze")
async def analyze_endpoint(body: ImageRequest):
    """
    POST /ai/analyze

    Tag an outfit photo. Falls back to generic tags when the model fails.
    """
    try:
        return await analyze_image(body.image_url)
    except StylistError as e:
        raise _http_error(e)


@router.post("/ai/recreate")
async def recreate_endpoint(body: RecreateRequest):
    """
    POST /ai/recreate

    Build a personalized outfit from style tags, with shoppable products.
    """
    try:
        return await recreate_look(body.user_id, body.tags, body.image_url, body.user_gender)
    except StylistError as e:
        raise _http_error(e)


@router.post("/ai/personalized-shop")
async def personalized_shop_endpoint(body: ShopRequest):
    """
    POST /ai/personalized-shop

    Recreate an outfit photo from the user's wardrobe and suggest purchases
    that respect every stored preference.
    """
    try:
        return await personalized_shop(body.user_id, body.image_url, body.gender)
    except StylistError as e:
        raise _http_error(e)


@router.post("/ai/chat")
async def chat_endpoint(body: ChatRequest):
    """POST /ai/chat - stylist chat with history and long-term memory."""
    messages = [{"role": m.role, "content": m.content} for m in body.messages]
    try:
        return await chat(body.user_id, messages)
    except StylistError as e:
        raise _http_error(e)


@router.delete("/ai/chat/memory/{user_id}")
async def forget_memory_endpoint(user_id: str):
    """Drop a user's long-term chat memory."""
    removed = await forget_memory(user_id)
    return {"user_id": user_id, "removed": removed}


@router.post("/ai/suggest")
async def suggest_endpoint(body: Optional[SuggestRequest] = None):
    """POST /ai/suggest - daily style brief."""
    payload = body.model_dump(exclude_none=True) if body else {}
    return await suggest(payload)


@router.post("/ai/similar-looks")
async def similar_looks_endpoint(body: ImageRequest):
    """POST /ai/similar-looks - visually similar looks via Google Lens."""
    if not body.image_url:
        raise HTTPException(status_code=400, detail="Missing imageUrl")
    looks = await find_similar_looks(body.image_url)
    return {"looks": looks}


# ==================== BARCODE ====================

@router.post("/ai/decode-barcode")
async def decode_barcode_endpoint(file: UploadFile = File(..., description="Photo of a barcode")):
    """
    POST /ai/decode-barcode

    Multipart upload (jpeg/png/webp, max 10MB). Returns {"barcode": digits|null}.
    """
    content = await file.read()
    try:
        return await decode_barcode(content, file.content_type)
    except ValidationError as ve:
        raise HTTPException(status_code=ve.status_code, detail=ve.message)
    except StylistError as e:
        raise _http_error(e)


@router.post("/ai/lookup-barcode")
async def lookup_barcode_endpoint(body: BarcodeLookupRequest):
    """POST /ai/lookup-barcode - UPCItemDB, then RapidAPI, then a model guess."""
    try:
        return await lookup_barcode(body.upc)
    except ValidationError as ve:
        raise HTTPException(status_code=ve.status_code, detail=ve.message)
