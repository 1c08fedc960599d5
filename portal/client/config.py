"""Client configuration, read from the environment (and ``.env``) like the server settings."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_STORAGE_DIR = Path.home() / ".epicq"


@dataclass
class ClientConfig:
    base_url: str = DEFAULT_BASE_URL
    token: Optional[str] = None
    storage_dir: Path = field(default_factory=lambda: DEFAULT_STORAGE_DIR)
    # None: no client-side timeout, the transport default applies
    timeout: Optional[float] = None

    @classmethod
    def from_env(cls) -> "ClientConfig":
        load_dotenv()
        timeout = os.getenv("EPICQ_API_TIMEOUT")
        return cls(
            base_url=os.getenv("EPICQ_API_URL", DEFAULT_BASE_URL).rstrip("/"),
            token=os.getenv("EPICQ_API_TOKEN") or None,
            storage_dir=Path(os.getenv("EPICQ_STORAGE_DIR", str(DEFAULT_STORAGE_DIR))).expanduser(),
            timeout=float(timeout) if timeout else None,
        )
