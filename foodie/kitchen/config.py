"""TOML configuration loader for the kitchen module."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]

DEFAULT_CONFIG_PATH = "~/.config/foodie/config.toml"


@dataclass
class UserConfig:
    id: str = "local"


@dataclass
class DatabaseConfig:
    path: str = "~/.config/foodie/kitchen.db"


@dataclass
class ClaudeConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"


@dataclass
class GeminiConfig:
    api_key: str = ""
    model: str = "gemini-2.0-flash"


@dataclass
class AssistantConfig:
    backend: str = "claude"
    language: str = "Spanish"
    claude: ClaudeConfig = field(default_factory=ClaudeConfig)
    gemini: GeminiConfig = field(default_factory=GeminiConfig)


@dataclass
class SuggestionsConfig:
    default_limit: int = 5
    max_limit: int = 10

    def clamp(self, limit: int | None) -> int:
        """Apply the default and cap a requested suggestion count."""
        if limit is None:
            limit = self.default_limit
        return max(1, min(limit, self.max_limit))


@dataclass
class BarcodeConfig:
    base_url: str = "https://world.openfoodfacts.org"
    timeout: float = 10.0
    language: str = "es"


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class KitchenConfig:
    user: UserConfig = field(default_factory=UserConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    assistant: AssistantConfig = field(default_factory=AssistantConfig)
    suggestions: SuggestionsConfig = field(default_factory=SuggestionsConfig)
    barcode: BarcodeConfig = field(default_factory=BarcodeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path | None = None) -> KitchenConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    API keys and the user id can be overridden via environment variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path).expanduser()
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    usr = raw.get("user", {})
    dbs = raw.get("database", {})
    ast = raw.get("assistant", {})
    sug = raw.get("suggestions", {})
    bar = raw.get("barcode", {})
    log = raw.get("logging", {})

    claude_cfg = ast.get("claude", {})
    gemini_cfg = ast.get("gemini", {})

    # Resolve API keys: config file → environment variable
    claude_api_key = claude_cfg.get("api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )
    gemini_api_key = gemini_cfg.get("api_key", "") or os.environ.get(
        "GEMINI_API_KEY", ""
    )
    # Environment wins for the user id so one config can serve several people
    user_id = os.environ.get("FOODIE_USER_ID", "") or usr.get("id", "local")

    return KitchenConfig(
        user=UserConfig(id=user_id),
        database=DatabaseConfig(
            path=dbs.get("path", "~/.config/foodie/kitchen.db"),
        ),
        assistant=AssistantConfig(
            backend=ast.get("backend", "claude"),
            language=ast.get("language", "Spanish"),
            claude=ClaudeConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", "claude-sonnet-4-5-20250929"),
            ),
            gemini=GeminiConfig(
                api_key=gemini_api_key,
                model=gemini_cfg.get("model", "gemini-2.0-flash"),
            ),
        ),
        suggestions=SuggestionsConfig(
            default_limit=sug.get("default_limit", 5),
            max_limit=sug.get("max_limit", 10),
        ),
        barcode=BarcodeConfig(
            base_url=bar.get("base_url", "https://world.openfoodfacts.org"),
            timeout=bar.get("timeout", 10.0),
            language=bar.get("language", "es"),
        ),
        logging=LoggingConfig(
            level=log.get("level", "WARNING"),
        ),
    )
