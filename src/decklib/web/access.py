"""Access codes for the landing page gate.

The gate only keeps casual visitors out of a static site: codes are
published as SHA-256 digests and a four digit code can be brute forced.
"""

from __future__ import annotations

import hashlib
import secrets
from pathlib import Path

from decklib.utils.files import LocalFileSystem

CODE_DIGITS = 4


def hash_access_code(code: str) -> str:
    return hashlib.sha256(code.strip().encode("utf-8")).hexdigest()


def generate_access_code(digits: int = CODE_DIGITS) -> str:
    return f"{secrets.randbelow(10 ** digits):0{digits}d}"


def write_access_code(fs: LocalFileSystem, path: Path, code: str) -> None:
    """Record a generated code outside the published folder."""
    fs.write_text(path, f"{code}\n")
