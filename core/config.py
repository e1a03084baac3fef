"""Settings for reaching the Jolokia agent, read from the environment (.env supported)."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel

from .acl import DEFAULT_ACL_MBEAN


class Settings(BaseModel):
    jolokia_url: str
    jolokia_username: Optional[str] = None
    jolokia_password: Optional[str] = None
    jolokia_timeout: float = 30.0
    acl_mbean: str = DEFAULT_ACL_MBEAN
    api_key: Optional[str] = None

    @classmethod
    def from_env(
        cls, env_file: Optional[str] = ".env", jolokia_url: Optional[str] = None
    ) -> "Settings":
        """Read settings from the environment; ``jolokia_url`` overrides JOLOKIA_URL."""
        if env_file and Path(env_file).exists():
            load_dotenv(env_file)

        url = jolokia_url or os.getenv("JOLOKIA_URL")
        if not url:
            raise ValueError(
                "JOLOKIA_URL not configured. "
                "Set JOLOKIA_URL environment variable or add it to .env."
            )

        timeout = os.getenv("JOLOKIA_TIMEOUT", "30")
        try:
            jolokia_timeout = float(timeout)
        except ValueError:
            logger.warning(f"Invalid JOLOKIA_TIMEOUT {timeout!r}, using 30 seconds")
            jolokia_timeout = 30.0

        return cls(
            jolokia_url=url,
            jolokia_username=os.getenv("JOLOKIA_USERNAME") or None,
            jolokia_password=os.getenv("JOLOKIA_PASSWORD") or None,
            jolokia_timeout=jolokia_timeout,
            acl_mbean=os.getenv("RBAC_ACL_MBEAN") or DEFAULT_ACL_MBEAN,
            api_key=os.getenv("API_KEY") or None,
        )
