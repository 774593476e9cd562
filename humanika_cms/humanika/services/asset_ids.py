"""
Asset reference normalization.
An asset field holds None, a canonical Drive file id, or a legacy URL that embeds the id.
Checks, in order:
1. fixed-length opaque token (already canonical) -> unchanged
2. ".../d/<id>/..." path
3. "...?id=<id>" / "&id=<id>" query
Anything else is an external URL we do not own: passed through unmodified.
"""
import re
from typing import Optional

DRIVE_FILE_ID_LENGTH = 33

CANONICAL_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{%d}$" % DRIVE_FILE_ID_LENGTH)
PATH_ID_PATTERN = re.compile(r"/d/([A-Za-z0-9_-]+)(?:[/?#]|$)")
QUERY_ID_PATTERN = re.compile(r"[?&]id=([A-Za-z0-9_-]+)")
TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

DRIVE_VIEW_URL = "https://drive.google.com/file/d/{file_id}/view"
DRIVE_DOWNLOAD_URL = "https://drive.google.com/uc?export=download&id={file_id}"
DRIVE_UC_URL = "https://drive.google.com/uc?export=view&id={file_id}"


def extract_file_id(value: Optional[str]) -> Optional[str]:
    """Canonical file id, or None when the value is empty or not one of ours."""
    if not value:
        return None
    value = value.strip()
    if CANONICAL_ID_PATTERN.match(value):
        return value
    m = PATH_ID_PATTERN.search(value)
    if m:
        return m.group(1)
    m = QUERY_ID_PATTERN.search(value)
    if m:
        return m.group(1)
    return None


def normalize_asset_ref(value: Optional[str]) -> Optional[str]:
    """Canonical id when one can be extracted; otherwise the value itself (foreign URL)."""
    if not value:
        return None
    file_id = extract_file_id(value)
    return file_id if file_id is not None else value


def is_owned_asset(value: Optional[str]) -> bool:
    """True when the reference points at an object the asset manager may delete."""
    return extract_file_id(value) is not None


def resolve_url(file_id: str, export_type: str = "view") -> str:
    """Direct URL for a file id (or a Drive URL): view | download | uc. Empty string for anything else."""
    value = (file_id or "").strip()
    file_id = extract_file_id(value) or (value if TOKEN_PATTERN.match(value) else "")
    if not file_id:
        return ""
    if export_type == "uc":
        return DRIVE_UC_URL.format(file_id=file_id)
    if export_type == "download":
        return DRIVE_DOWNLOAD_URL.format(file_id=file_id)
    return DRIVE_VIEW_URL.format(file_id=file_id)
