import hashlib
from typing import Iterable, Optional


def hash_code(code: str) -> str:
    """
    md5 hex digest of the trimmed code.

    Only used to compare codes at a fixed length. md5 is not a secrecy
    boundary here, anyone holding the digest list can brute force it.
    """
    return hashlib.md5(code.strip().encode("utf-8"), usedforsecurity=False).hexdigest()


class AccessCodeValidator:
    def __init__(self, accepted_hashes: Iterable[str]):
        self._accepted = frozenset(accepted_hashes)

    def authorize(self, submitted_code: Optional[str]) -> bool:
        return hash_code(submitted_code or "") in self._accepted
