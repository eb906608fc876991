from fastapi import APIRouter, Depends, Request
from loguru import logger

from api.dependencies import client_ip, get_access_validator
from api.schemas.auth import ApiResult, PromptAuthRequest
from core.config import AUTH_RATE_LIMIT
from core.security import AccessCodeValidator
from services.limiting import limiter


router = APIRouter(prefix="/api", tags=["Auth"])


# ---------- routes ----------
@router.post("/prompt-auth", response_model=ApiResult)
@limiter.limit(AUTH_RATE_LIMIT)
async def prompt_auth(
    request: Request,
    body: PromptAuthRequest,
    validator: AccessCodeValidator = Depends(get_access_validator),
):
    # always 200, the verdict travels in `success`
    success = validator.authorize(body.code)
    if not success:
        logger.info("Access code rejected for {}", client_ip(request))

    return {
        "success": success,
        "message": "Access granted" if success else "Wrong code, please try again",
    }
