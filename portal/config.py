"""
Portal client settings.

Read from the environment, with a ``.env`` file in the working directory
loaded first when present (same convention as the backend settings).
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class PortalSettings:
    api_url: str = "http://127.0.0.1:8000/api"
    ws_url: str = "ws://127.0.0.1:8000/ws/notifications/"
    token: str = ""
    # None leaves network calls without an explicit timeout
    timeout: Optional[float] = None
    appointments_limit: int = 20
    doctors_limit: int = 50

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "PortalSettings":
        env_path = env_file or Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(dotenv_path=env_path)
        timeout = os.getenv("PORTAL_TIMEOUT", "").strip()
        return cls(
            api_url=os.getenv("PORTAL_API_URL", cls.api_url).rstrip("/"),
            ws_url=os.getenv("PORTAL_WS_URL", cls.ws_url),
            token=os.getenv("PORTAL_TOKEN", ""),
            timeout=float(timeout) if timeout else None,
        )
