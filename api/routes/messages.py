from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from loguru import logger

from api.dependencies import client_ip, get_access_validator, get_message_store
from api.schemas.auth import ApiResult
from api.schemas.message import LeaveMessageRequest, MessageRecord
from core.config import AUTH_RATE_LIMIT
from core.security import AccessCodeValidator
from services.limiting import limiter
from services.record_store import JsonArrayStore, utc_now_iso

router = APIRouter(prefix="/api", tags=["Messages"])


@router.post("/leave-message", response_model=ApiResult)
@limiter.limit(AUTH_RATE_LIMIT)
async def leave_message(
    request: Request,
    body: LeaveMessageRequest,
    validator: AccessCodeValidator = Depends(get_access_validator),
    store: JsonArrayStore = Depends(get_message_store),
):
    """
    Append a visitor message to the mailbox file.
    The code is checked first, so a bad code never touches the file.
    """
    if not validator.authorize(body.code):
        logger.info("Leave-message denied for {}", client_ip(request))
        return JSONResponse(
            status_code=401,
            content={"success": False, "message": "Wrong code, please try again"},
        )

    if not body.nickname or not body.content:
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Please fill in both nickname and message"},
        )

    record = MessageRecord(
        nickname=body.nickname,
        content=body.content,
        created_at=utc_now_iso(),
    )

    try:
        total = await store.append(record.model_dump(by_alias=True))
    except Exception:  # StorageError or anything unexpected, never echoed
        logger.exception("[LeaveMessage] failed to save message")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Server error, please try again later"},
        )

    logger.info("Saved message #{} from {}", total, body.nickname)
    return {"success": True, "message": "Message saved, thanks for your support!"}
