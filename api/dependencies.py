from fastapi import Depends, Request

from core.config import ServerConfig, get_server_config
from core.security import AccessCodeValidator
from services.record_store import JsonArrayStore, LineLogStore


def client_ip(request: Request) -> str:
    """
    First hop of X-Forwarded-For, else X-Real-IP, else "unknown".
    Also used as the rate limit key.
    """
    forwarded = request.headers.get("x-forwarded-for") or request.headers.get("x-real-ip")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return "unknown"


def get_access_validator(
    config: ServerConfig = Depends(get_server_config),
) -> AccessCodeValidator:
    return AccessCodeValidator(config.code_hashes)


def get_message_store(
    config: ServerConfig = Depends(get_server_config),
) -> JsonArrayStore:
    return JsonArrayStore(config.message_file)


def get_input_log_store(
    config: ServerConfig = Depends(get_server_config),
) -> LineLogStore:
    return LineLogStore(config.input_log_file)
