from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv


@dataclass(slots=True)
class BotConfig:
    """Configuration container for the school management bot."""

    token: str
    admin_secret_code: str
    admin_ids: List[int] = field(default_factory=list)
    data_dir: Path = field(default=Path("data"))

    @classmethod
    def load(cls, env_path: str | os.PathLike[str] | None = ".env") -> "BotConfig":
        """Load configuration from environment variables."""
        if env_path is not None:
            load_dotenv(env_path)

        raw_admins = os.getenv("SCHOOL_BOT_ADMIN_IDS", "")
        admin_ids = [
            int(value)
            for chunk in raw_admins.split(",")
            if (value := chunk.strip()).isdigit()
        ]

        token = os.getenv("SCHOOL_BOT_TOKEN") or os.getenv("BOT_TOKEN")
        if not token:
            raise RuntimeError(
                "SCHOOL_BOT_TOKEN is not defined. Please add it to your .env file before running the bot."
            )

        secret = os.getenv("ADMIN_SECRET_CODE", "").strip()
        if not secret:
            raise RuntimeError(
                "ADMIN_SECRET_CODE is not defined. Administrators cannot log in without it."
            )

        data_dir = Path(os.getenv("SCHOOL_BOT_DATA_DIR", "data")).expanduser()
        return cls(
            token=token.strip(),
            admin_secret_code=secret,
            admin_ids=admin_ids,
            data_dir=data_dir,
        )

    @property
    def users_path(self) -> Path:
        return self.data_dir / "users.json"

    @property
    def students_path(self) -> Path:
        return self.data_dir / "students.json"

    @property
    def teachers_path(self) -> Path:
        return self.data_dir / "teachers.json"


__all__ = ["BotConfig"]
