from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from loguru import logger

from api.dependencies import client_ip, get_input_log_store
from api.schemas.input_log import InputLogEntry, UserInputLogRequest
from core.config import ServerConfig, get_server_config
from services.attachments import save_attachments
from services.record_store import LineLogStore, utc_now_iso

router = APIRouter(prefix="/api", tags=["Input log"])


@router.post("/user-input-log")
async def log_user_input(
    body: UserInputLogRequest,
    ip: str = Depends(client_ip),
    store: LineLogStore = Depends(get_input_log_store),
    config: ServerConfig = Depends(get_server_config),
):
    """
    Append the raw chat input (and the reply, if sent) to the input log.
    Image data URLs are written next to it and referenced by file name.
    """
    timestamp = utc_now_iso()

    images = None
    if body.images:
        images = await save_attachments(config.attachments_dir, timestamp, body.images)

    entry = InputLogEntry(
        timestamp=timestamp,
        raw_input=body.raw_input,
        response=body.response,
        client_ip=ip,
        images=images,
    )

    try:
        await store.append_line(entry.to_record())
    except Exception:  # StorageError or anything unexpected, never echoed
        logger.exception("[User Input Log API] Failed to write log")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Failed to write log"},
        )

    result = {"success": True}
    if images is not None:
        result["images"] = images
    return result
