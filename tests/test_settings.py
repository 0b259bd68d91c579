import json

from battlesim.core.logging import logger
from battlesim.system.settings import Settings, SettingsData


def test_missing_file_gives_defaults(tmp_path):
    s = Settings.load(tmp_path / "settings.json")
    assert s.data == SettingsData()
    assert s.path == tmp_path / "settings.json"


def test_save_then_load(tmp_path):
    path = tmp_path / "settings.json"
    s = Settings.load(path)
    s.data.battle_size = 2
    s.data.ai = "greedy"
    s.data.seed = 99
    s.save()
    again = Settings.load(path)
    assert again.data.battle_size == 2
    assert again.data.ai == "greedy"
    assert again.data.seed == 99


def test_bad_values_are_normalized(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"battle_size": 7, "ai": "psychic", "log_level": "LOUD",
                                "level": 0, "seed": "abc", "colour": "blue"}))
    data = Settings.load(path).data
    assert data.battle_size == 1
    assert data.ai == "random"
    assert data.log_level == "INFO"
    assert data.level == 50
    assert data.seed is None


def test_unreadable_file_falls_back(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json")
    assert Settings.load(path).data == SettingsData()


def test_apply_logging(tmp_path):
    s = Settings.load(tmp_path / "settings.json")
    try:
        s.data.debug = True
        s.apply_logging()
        assert logger.enabled("DEBUG")
        s.data.debug = False
        s.data.log_level = "ERROR"
        s.apply_logging()
        assert not logger.enabled("WARN")
    finally:
        logger.set_level("INFO")
