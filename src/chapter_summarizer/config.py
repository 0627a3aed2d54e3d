"""Settings persistence for the host application.

Settings live in ``settings.json`` under the config home, which defaults to
``~/.chapter_summarizer`` and can be moved with ``CHAPTER_SUMMARIZER_HOME``.
``OPENROUTER_API_KEY`` fills in the API key when none is stored.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from chapter_summarizer.errors import StoreError
from chapter_summarizer.models.settings import Settings

log = logging.getLogger(__name__)

HOME_ENV_VAR = "CHAPTER_SUMMARIZER_HOME"
API_KEY_ENV_VAR = "OPENROUTER_API_KEY"
DEFAULT_HOME = Path.home() / ".chapter_summarizer"
SETTINGS_FILE = "settings.json"
SUMMARIES_DIR = "summaries"

# Keys the settings dialog is allowed to write
EDITABLE_KEYS = ("api_key", "model", "prompt", "max_summary_tokens")


def get_config_home() -> Path:
    """Return the directory holding settings and saved summaries."""
    env_home = os.environ.get(HOME_ENV_VAR)
    if env_home:
        return Path(env_home).expanduser()
    return DEFAULT_HOME


class SettingsManager:
    """Load settings at startup and persist them on save."""

    def __init__(self, home: Path | None = None):
        self.home = home or get_config_home()
        self.settings_path = self.home / SETTINGS_FILE

    def default_summaries_dir(self) -> Path:
        return self.home / SUMMARIES_DIR

    def _read_raw(self) -> dict[str, Any]:
        if not self.settings_path.exists():
            return {}
        try:
            data = json.loads(self.settings_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.warning(f"Could not read {self.settings_path}: {e}. Using defaults.")
            return {}
        if not isinstance(data, dict):
            log.warning(f"Ignoring malformed settings file {self.settings_path}")
            return {}
        return data

    def load(self) -> Settings:
        """Load settings, falling back to defaults for anything invalid."""
        data = self._read_raw()
        try:
            settings = Settings.model_validate(data)
        except ValidationError as e:
            # Fall back per field
            invalid = {err["loc"][0] for err in e.errors() if err["loc"]}
            log.warning(
                f"Invalid settings in {self.settings_path} "
                f"({', '.join(sorted(map(str, invalid)))}). Using defaults for those."
            )
            settings = Settings.model_validate(
                {k: v for k, v in data.items() if k not in invalid}
            )

        updates: dict[str, Any] = {}
        if not settings.api_key:
            env_key = os.environ.get(API_KEY_ENV_VAR, "").strip()
            if env_key:
                updates["api_key"] = env_key
        if settings.summaries_dir is None:
            updates["summaries_dir"] = self.default_summaries_dir()
        return settings.model_copy(update=updates) if updates else settings

    def save(self, settings: Settings, **changes: Any) -> Settings:
        """Apply edits, validate (clamping the token limit) and persist.

        Raises:
            ValueError: For keys the dialog does not expose.
            StoreError: If the file cannot be written.
        """
        unknown = set(changes) - set(EDITABLE_KEYS)
        if unknown:
            raise ValueError(f"Unknown setting(s): {', '.join(sorted(unknown))}")

        merged = settings.model_dump()
        merged.update({k: v for k, v in changes.items() if v is not None})
        updated = Settings.model_validate(merged)

        try:
            self.home.mkdir(parents=True, exist_ok=True)
            self.settings_path.write_text(
                updated.model_dump_json(indent=2, exclude={"summaries_dir"}),
                encoding="utf-8",
            )
        except OSError as e:
            raise StoreError(f"Could not save settings: {e}") from e

        log.info(f"Settings saved to {self.settings_path}")
        return updated
