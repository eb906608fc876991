import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

from core.security import hash_code

load_dotenv()


# -------------------------------
# Storage
# -------------------------------
DATA_DIR = os.getenv("DATA_DIR", "data")
MESSAGE_FILE = os.getenv("MESSAGE_FILE", "leon-messages.json")
INPUT_LOG_FILE = os.getenv("INPUT_LOG_FILE", "raw_user_inputs.log")
ATTACHMENTS_DIR = os.getenv("ATTACHMENTS_DIR", "user_input_images")

# -------------------------------
# Access codes
# CODE        -> comma separated plaintext codes (hashed on load)
# CODE_HASHES -> comma separated md5 hex digests
# -------------------------------
CODE = os.getenv("CODE", "")
CODE_HASHES = os.getenv("CODE_HASHES", "")

# -------------------------------
# HTTP
# -------------------------------
APP_LOG_FILE = os.getenv("APP_LOG_FILE", "logs.json")
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000")
AUTH_RATE_LIMIT = os.getenv("AUTH_RATE_LIMIT", "30/minute")
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"


def split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _build_code_hashes(codes: str, hashes: str) -> frozenset[str]:
    plain = {hash_code(c) for c in split_csv(codes)}
    prehashed = {h.lower() for h in split_csv(hashes)}
    return frozenset(plain | prehashed)


@dataclass(frozen=True)
class ServerConfig:
    """
    Process-wide settings, loaded once at startup and read-only afterwards.
    Routes receive it through ``Depends(get_server_config)``.
    """
    data_dir: Path
    message_file: Path
    input_log_file: Path
    attachments_dir: Path
    code_hashes: frozenset[str]

    @classmethod
    def from_values(
        cls,
        data_dir: str | Path,
        *,
        codes: str = "",
        code_hashes: str = "",
        message_file: str = MESSAGE_FILE,
        input_log_file: str = INPUT_LOG_FILE,
        attachments_dir: str = ATTACHMENTS_DIR,
    ) -> "ServerConfig":
        base = Path(data_dir)
        return cls(
            data_dir=base,
            message_file=base / message_file,
            input_log_file=base / input_log_file,
            attachments_dir=base / attachments_dir,
            code_hashes=_build_code_hashes(codes, code_hashes),
        )


@lru_cache(maxsize=1)
def get_server_config() -> ServerConfig:
    return ServerConfig.from_values(
        DATA_DIR,
        codes=CODE,
        code_hashes=CODE_HASHES,
    )
