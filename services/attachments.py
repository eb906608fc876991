# services/attachments.py
import re
import base64
import binascii
from pathlib import Path
from typing import Any, List, Optional, Sequence

import aiofiles
import aiofiles.os
from loguru import logger

DATA_URL_RE = re.compile(r"^data:(?P<mime>[^;,]*);base64,(?P<payload>.*)$", re.DOTALL)

KNOWN_EXTENSIONS = {
    "png": "png",
    "jpeg": "jpg",
    "jpg": "jpg",
    "gif": "gif",
    "webp": "webp",
    "bmp": "bmp",
}
DEFAULT_EXTENSION = "png"


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------
def sanitize_timestamp(timestamp: str) -> str:
    return timestamp.replace(":", "-").replace(".", "-")


def extension_for(mime: str) -> str:
    subtype = mime.partition("/")[2].strip().lower()
    return KNOWN_EXTENSIONS.get(subtype, DEFAULT_EXTENSION)


def decode_data_url(data_url: Any) -> Optional[tuple[str, bytes]]:
    """(extension, raw bytes) for a base64 data URL, or None if it isn't one."""
    if not isinstance(data_url, str):
        return None
    match = DATA_URL_RE.match(data_url.strip())
    if not match:
        return None

    payload = "".join(match.group("payload").split())
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None
    return extension_for(match.group("mime")), raw


# ------------------------------------------------------------------
# Sideloader
# ------------------------------------------------------------------
async def save_attachments(
    base_dir: str | Path,
    timestamp: str,
    data_urls: Sequence[Any],
) -> List[str]:
    """
    Write every decodable data URL to ``base_dir`` and return the file names
    in input order. Malformed entries and failed writes are skipped, the
    rest of the batch still goes through.
    """
    base_dir = Path(base_dir)
    prefix = sanitize_timestamp(timestamp)
    saved: List[str] = []

    decoded = []
    for index, data_url in enumerate(data_urls):
        result = decode_data_url(data_url)
        if result is None:
            logger.warning("Skipping attachment #{}: not a base64 data URL", index)
            continue
        decoded.append((index, *result))

    if not decoded:
        return saved

    try:
        await aiofiles.os.makedirs(base_dir, exist_ok=True)
    except OSError:
        logger.exception("Cannot create attachments dir {}", base_dir)
        return saved

    for index, ext, raw in decoded:
        filename = f"{prefix}-{index}.{ext}"
        try:
            async with aiofiles.open(base_dir / filename, "wb") as f:
                await f.write(raw)
        except OSError:
            logger.exception("Failed to write attachment {}", filename)
            continue
        saved.append(filename)

    return saved
