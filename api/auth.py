"""API key protection for the tree endpoints.

Provides `require_api_key`, a FastAPI dependency checking the `X-API-Key`
header against the `API_KEY` env var.
"""
from __future__ import annotations

import hmac
import os
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def verify_api_key(key: Optional[str]) -> bool:
    """Return True if provided key matches configured `API_KEY` env var."""
    if not key:
        return False
    expected = os.getenv("API_KEY")
    if not expected:
        return False
    return hmac.compare_digest(key.encode(), expected.encode())


def require_api_key(api_key: Optional[str] = Security(api_key_header)) -> bool:
    if not verify_api_key(api_key):
        raise HTTPException(status_code=403, detail="Invalid API Key")
    return True
