"""Settings management for the chat overlay engine."""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from appdirs import user_config_dir

from .models import CasingPolicy

logger = logging.getLogger(__name__)

APP_NAME = "chat-overlay"
APP_AUTHOR = "chat-overlay"

# Kraken-style endpoint: GET {base_url}{handle} -> {"display_name": ...}
DEFAULT_LOOKUP_BASE_URL = "https://api.twitch.tv/kraken/users/"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)


def get_config_dir() -> Path:
    """Get the configuration directory."""
    path = Path(user_config_dir(APP_NAME, APP_AUTHOR))
    path.mkdir(parents=True, exist_ok=True)
    return path


@dataclass
class MessageSettings:
    """Username casing options."""

    casing_policy: CasingPolicy = CasingPolicy.NONE
    infer_casing_from_body: bool = False


@dataclass
class LookupSettings:
    """Identity-lookup endpoint settings."""

    base_url: str = DEFAULT_LOOKUP_BASE_URL
    client_id: str = ""
    timeout_seconds: int = 10


@dataclass
class EmojiSettings:
    """Emoji/badge loading settings."""

    animate: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout_seconds: int = 10
    loader_threads: int = 2


@dataclass
class Settings:
    """Engine settings."""

    message: MessageSettings = field(default_factory=MessageSettings)
    lookup: LookupSettings = field(default_factory=LookupSettings)
    emoji: EmojiSettings = field(default_factory=EmojiSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from file."""
        if path is None:
            path = get_config_dir() / "settings.json"

        if not path.exists():
            return cls()

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            return cls._from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable settings file {path}: {e}")
            return cls()

    def save(self, path: Path | None = None) -> None:
        """Save settings to file."""
        if path is None:
            path = get_config_dir() / "settings.json"

        path.parent.mkdir(parents=True, exist_ok=True)

        # Atomic write: write to temp file then rename to prevent corruption on crash
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp", prefix="settings_")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._to_dict(), f, indent=2)
            os.replace(tmp_path, path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    @staticmethod
    def _validate_int(value, default: int, min_val: int = 0, max_val: int | None = None) -> int:
        """Validate and constrain an integer value."""
        if not isinstance(value, int) or isinstance(value, bool):
            return default
        if value < min_val:
            return min_val
        if max_val is not None and value > max_val:
            return max_val
        return value

    @classmethod
    def _from_dict(cls, data: dict) -> "Settings":
        """Create Settings from a dictionary with validation."""
        settings = cls()

        if "message" in data:
            m = data["message"]
            settings.message = MessageSettings(
                casing_policy=CasingPolicy.from_value(m.get("casing_policy")),
                infer_casing_from_body=bool(m.get("infer_casing_from_body", False)),
            )

        if "lookup" in data:
            lk = data["lookup"]
            settings.lookup = LookupSettings(
                base_url=lk.get("base_url") or DEFAULT_LOOKUP_BASE_URL,
                client_id=lk.get("client_id", ""),
                timeout_seconds=cls._validate_int(
                    lk.get("timeout_seconds"), 10, min_val=1, max_val=120
                ),
            )

        if "emoji" in data:
            e = data["emoji"]
            settings.emoji = EmojiSettings(
                animate=bool(e.get("animate", True)),
                user_agent=e.get("user_agent") or DEFAULT_USER_AGENT,
                request_timeout_seconds=cls._validate_int(
                    e.get("request_timeout_seconds"), 10, min_val=1, max_val=120
                ),
                loader_threads=cls._validate_int(
                    e.get("loader_threads"), 2, min_val=1, max_val=16
                ),
            )

        return settings

    def _to_dict(self) -> dict:
        """Convert Settings to a dictionary."""
        return {
            "message": {
                "casing_policy": self.message.casing_policy.value,
                "infer_casing_from_body": self.message.infer_casing_from_body,
            },
            "lookup": {
                "base_url": self.lookup.base_url,
                "client_id": self.lookup.client_id,
                "timeout_seconds": self.lookup.timeout_seconds,
            },
            "emoji": {
                "animate": self.emoji.animate,
                "user_agent": self.emoji.user_agent,
                "request_timeout_seconds": self.emoji.request_timeout_seconds,
                "loader_threads": self.emoji.loader_threads,
            },
        }
