from typing import Optional

from pydantic import BaseModel


class DecorationResult(BaseModel):
    mode: str
    acl_mbean: Optional[str] = None
    mbean_count: int = 0
    request_count: int = 0
    failed: bool = False
    error: Optional[str] = None
