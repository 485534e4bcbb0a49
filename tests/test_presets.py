"""Tests for preset storage in ``retimekit.presets``."""

import json
from typing import Any

import pytest

from retimekit.constants import DEFAULT_PRESETS, PRESETS_PREFERENCE_KEY
from retimekit.definitions import NormalizedCurve
from retimekit.presets import JsonPreferenceStore, PresetFormatError, PresetLibrary


class MemoryStore:
    """Preference store kept in a dict."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self.data = dict(data or {})

    def has_preference(self, key: str) -> bool:
        return key in self.data

    def get_preference(self, key: str) -> Any:
        return self.data.get(key)

    def set_preference(self, key: str, value: Any) -> None:
        self.data[key] = value


EASE = NormalizedCurve(0.25, 0.1, 0.25, 1.0)


class TestLoad:
    def test_first_load_seeds_defaults(self):
        store = MemoryStore()
        library = PresetLibrary.load(store)

        assert len(library) == len(DEFAULT_PRESETS)
        assert PRESETS_PREFERENCE_KEY in store.data
        assert library.get("cubic-out") == NormalizedCurve(0.215, 0.61, 0.355, 1)

    def test_stored_presets_replace_defaults(self):
        store = MemoryStore(
            {PRESETS_PREFERENCE_KEY: {"mine": {"x1": 0.1, "y1": 0.2, "x2": 0.3, "y2": 0.4}}}
        )
        library = PresetLibrary.load(store)
        assert library.names() == ["mine"]

    def test_deleted_defaults_stay_deleted(self):
        store = MemoryStore()
        library = PresetLibrary.load(store)
        library.clear()
        library.save_to(store)

        assert len(PresetLibrary.load(store)) == 0

    def test_null_preference_falls_back_to_defaults(self):
        library = PresetLibrary.load(MemoryStore({PRESETS_PREFERENCE_KEY: None}))
        assert "expo-in" in library

    def test_malformed_preset_raises(self):
        store = MemoryStore({PRESETS_PREFERENCE_KEY: {"bad": {"x1": 0.1}}})
        with pytest.raises(PresetFormatError, match="bad"):
            PresetLibrary.load(store)


class TestEditing:
    def test_save_strips_name(self):
        library = PresetLibrary()
        assert library.save("  ease  ", EASE) == "ease"
        assert library.get("ease") == EASE

    @pytest.mark.parametrize("name", ["", "   ", "x" * 31])
    def test_save_rejects_bad_names(self, name):
        with pytest.raises(ValueError):
            PresetLibrary().save(name, EASE)

    def test_save_overwrites(self):
        library = PresetLibrary({"ease": NormalizedCurve.identity()})
        library.save("ease", EASE)
        assert library.get("ease") == EASE
        assert len(library) == 1

    def test_names_are_sorted_case_insensitively(self):
        library = PresetLibrary({"beta": EASE, "Alpha": EASE, "gamma": EASE})
        assert library.names() == ["Alpha", "beta", "gamma"]

    def test_rename(self):
        library = PresetLibrary({"old": EASE})
        library.rename("old", "new")
        assert "old" not in library
        assert library.get("new") == EASE

    def test_rename_onto_existing_raises(self):
        library = PresetLibrary({"a": EASE, "b": NormalizedCurve.identity()})
        with pytest.raises(ValueError, match="already exists"):
            library.rename("a", "b")

    def test_delete_unknown_raises(self):
        with pytest.raises(KeyError):
            PresetLibrary().delete("missing")


class TestImportExport:
    def test_export_is_sorted_json(self):
        library = PresetLibrary({"b": EASE, "a": NormalizedCurve.identity()})
        payload = json.loads(library.export_json())
        assert list(payload) == ["a", "b"]
        assert payload["b"] == {"x1": 0.25, "y1": 0.1, "x2": 0.25, "y2": 1.0}

    def test_import_merges_and_counts_new(self):
        library = PresetLibrary({"ease": NormalizedCurve.identity(), "keep": EASE})
        text = json.dumps(
            {
                "ease": {"x1": 0.25, "y1": 0.1, "x2": 0.25, "y2": 1.0},
                "snap": {"x1": 0.9, "y1": 0, "x2": 0.1, "y2": 1},
            }
        )

        assert library.import_json(text) == 1
        assert library.get("ease") == EASE
        assert library.names() == ["ease", "keep", "snap"]

    @pytest.mark.parametrize("text", ["not json", "[1, 2]", '{"x": 3}'])
    def test_import_rejects_bad_content(self, text):
        library = PresetLibrary({"keep": EASE})
        with pytest.raises(PresetFormatError):
            library.import_json(text)
        assert library.names() == ["keep"]


class TestJsonPreferenceStore:
    def test_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "prefs.json"
        store = JsonPreferenceStore(path)
        library = PresetLibrary.load(store)
        library.save("mine", EASE)
        library.save_to(store)

        reloaded = PresetLibrary.load(JsonPreferenceStore(path))
        assert reloaded.get("mine") == EASE
        assert len(reloaded) == len(DEFAULT_PRESETS) + 1

    def test_other_preferences_survive(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")

        PresetLibrary.load(JsonPreferenceStore(path))

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["theme"] == "dark"
        assert PRESETS_PREFERENCE_KEY in data

    def test_invalid_file_raises(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("{oops", encoding="utf-8")
        with pytest.raises(PresetFormatError):
            JsonPreferenceStore(path).has_preference(PRESETS_PREFERENCE_KEY)
