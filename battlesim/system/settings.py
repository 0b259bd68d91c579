from __future__ import annotations
import json, os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional
from battlesim.core.logging import logger

SETTINGS_FILENAME = ".battlesim_settings.json"
LOG_LEVELS = {"DEBUG", "INFO", "WARN", "ERROR"}
AI_NAMES = {"random", "greedy"}

@dataclass
class SettingsData:
    log_level: str = "INFO"        # DEBUG / INFO / WARN / ERROR
    battle_size: int = 1           # combatants per side on the field, 1..3
    level: int = 50                # default creature level
    ai: str = "random"             # random / greedy
    seed: Optional[int] = None     # fixed rng seed for reproducible runs
    debug: bool = False            # verbose battle diagnostics

    def normalize(self):
        if self.log_level not in LOG_LEVELS:
            self.log_level = "INFO"
        if not isinstance(self.battle_size, int) or not 1 <= self.battle_size <= 3:
            self.battle_size = 1
        if not isinstance(self.level, int) or not 1 <= self.level <= 100:
            self.level = 50
        if self.ai not in AI_NAMES:
            self.ai = "random"
        if self.seed is not None and not isinstance(self.seed, int):
            self.seed = None
        self.debug = bool(self.debug)

class Settings:
    def __init__(self, data: SettingsData, path: Path):
        self.data = data
        self.path = path

    @classmethod
    def _resolve_path(cls) -> Path:
        home = Path(os.path.expanduser("~"))
        if home.is_dir() and os.access(home, os.W_OK):
            return home / SETTINGS_FILENAME
        return Path.cwd() / SETTINGS_FILENAME

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Settings":
        path = path or cls._resolve_path()
        if path.exists():
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
                # Backfill missing fields; unknown keys are dropped
                field_names = {f.name for f in fields(SettingsData)}
                data = SettingsData(**{k: v for k, v in raw.items() if k in field_names})
                data.normalize()
                logger.debug("SettingsLoaded", path=str(path))
                return cls(data, path)
            except (OSError, ValueError, TypeError, AttributeError) as e:
                logger.warn("SettingsParseFailedUsingDefaults", path=str(path), error=str(e))
        data = SettingsData()
        data.normalize()
        return cls(data, path)

    def save(self):
        try:
            self.path.write_text(json.dumps(asdict(self.data), indent=2))
            logger.debug("SettingsSaved", path=str(self.path))
        except OSError as e:
            logger.error("SettingsSaveFailed", error=str(e))

    def apply_logging(self):
        level = "DEBUG" if self.data.debug else self.data.log_level
        logger.set_level(level)  # type: ignore[arg-type]
