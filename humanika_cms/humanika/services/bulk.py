"""Per-item outcome of bulk operations (one failing item never aborts the batch)."""
from dataclasses import dataclass
from typing import Optional


@dataclass
class BulkItemResult:
    id: str
    ok: bool
    status: Optional[str] = None
    error: Optional[str] = None
    detail: Optional[str] = None
    asset_deleted: Optional[bool] = None
