from pathlib import Path

from models import Configuration
from settings import SettingsManager, load_configuration, store_configuration


def test_missing_file_gives_empty_configuration(tmp_path: Path) -> None:
    settings = SettingsManager(tmp_path / "nope" / "settings.json")
    assert load_configuration(settings) == Configuration("", "")


def test_configuration_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "airbar" / "settings.json"
    store_configuration(SettingsManager(path), Configuration("tok", "1234"))

    reloaded = load_configuration(SettingsManager(path))

    assert reloaded == Configuration("tok", "1234")


def test_corrupt_file_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_configuration(SettingsManager(path)) == Configuration()

    path.write_text("[1, 2]", encoding="utf-8")
    assert load_configuration(SettingsManager(path)) == Configuration()


def test_other_keys_are_preserved(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    settings = SettingsManager(path)
    settings.set("window_geometry", [10, 20])
    store_configuration(settings, Configuration("a", "b"))

    assert SettingsManager(path).get("window_geometry") == [10, 20]
