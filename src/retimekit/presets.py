from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol

from retimekit.constants import (
    DEFAULT_PRESETS,
    MAX_PRESET_NAME_LENGTH,
    PRESETS_PREFERENCE_KEY,
)
from retimekit.definitions import NormalizedCurve
from retimekit.typehints import PresetPayload


class PresetFormatError(ValueError):
    """Preset payload is not an object of named curves."""


class PreferenceStore(Protocol):
    """Key/value preference persistence."""

    def has_preference(self, key: str) -> bool: ...

    def get_preference(self, key: str) -> Any: ...

    def set_preference(self, key: str, value: Any) -> None: ...


class JsonPreferenceStore:
    """Preferences kept as one JSON object in a file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise PresetFormatError(f"{self.path} is not valid JSON: {e}") from e
        return data if isinstance(data, dict) else {}

    def has_preference(self, key: str) -> bool:
        return key in self._read()

    def get_preference(self, key: str) -> Any:
        return self._read().get(key)

    def set_preference(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def _curve_from_payload(name: str, raw: Any) -> NormalizedCurve:
    if not isinstance(raw, dict):
        raise PresetFormatError(f"Preset '{name}' is not an object")
    try:
        return NormalizedCurve(
            float(raw["x1"]), float(raw["y1"]), float(raw["x2"]), float(raw["y2"])
        )
    except (KeyError, TypeError, ValueError) as e:
        raise PresetFormatError(f"Preset '{name}' is missing or has invalid values: {e}") from e


def _curve_to_payload(curve: NormalizedCurve) -> dict[str, float]:
    return {"x1": curve.x1, "y1": curve.y1, "x2": curve.x2, "y2": curve.y2}


def _validate_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValueError("Preset name cannot be empty")
    if len(name) > MAX_PRESET_NAME_LENGTH:
        raise ValueError(
            f"Preset name too long. Please use {MAX_PRESET_NAME_LENGTH} characters or less."
        )
    return name


class PresetLibrary:
    """Named easing curves."""

    def __init__(self, presets: dict[str, NormalizedCurve] | None = None) -> None:
        self._presets: dict[str, NormalizedCurve] = dict(presets or {})

    @classmethod
    def with_defaults(cls) -> PresetLibrary:
        return cls({name: NormalizedCurve.from_values(values) for name, values in DEFAULT_PRESETS.items()})

    @classmethod
    def from_payload(cls, payload: Any) -> PresetLibrary:
        if not isinstance(payload, dict):
            raise PresetFormatError("Presets must be a JSON object of named curves")
        return cls({name: _curve_from_payload(name, raw) for name, raw in payload.items()})

    @classmethod
    def load(cls, store: PreferenceStore) -> PresetLibrary:
        """
        Load presets from preferences.

        The stored object replaces the defaults entirely, so presets the user
        deleted stay deleted. The first load seeds the store with the defaults.
        """
        if store.has_preference(PRESETS_PREFERENCE_KEY):
            saved = store.get_preference(PRESETS_PREFERENCE_KEY)
            if saved is not None:
                return cls.from_payload(saved)

        library = cls.with_defaults()
        library.save_to(store)
        return library

    def save_to(self, store: PreferenceStore) -> None:
        store.set_preference(PRESETS_PREFERENCE_KEY, self.to_payload())

    def __len__(self) -> int:
        return len(self._presets)

    def __contains__(self, name: object) -> bool:
        return name in self._presets

    def names(self) -> list[str]:
        """Preset names in case-insensitive alphabetical order."""
        return sorted(self._presets, key=str.lower)

    def get(self, name: str) -> NormalizedCurve:
        try:
            return self._presets[name]
        except KeyError:
            raise KeyError(f"Unknown preset: {name}")

    def save(self, name: str, curve: NormalizedCurve) -> str:
        name = _validate_name(name)
        self._presets[name] = curve
        return name

    def rename(self, old_name: str, new_name: str) -> str:
        curve = self.get(old_name)
        new_name = _validate_name(new_name)
        if new_name != old_name and new_name in self._presets:
            raise ValueError(f"Preset '{new_name}' already exists")
        del self._presets[old_name]
        self._presets[new_name] = curve
        return new_name

    def delete(self, name: str) -> None:
        self.get(name)
        del self._presets[name]

    def clear(self) -> None:
        self._presets.clear()

    def to_payload(self) -> PresetPayload:
        return {name: _curve_to_payload(self._presets[name]) for name in self.names()}

    def export_json(self) -> str:
        return json.dumps(self.to_payload(), indent=2)

    def import_json(self, text: str) -> int:
        """Merge presets from JSON, overwriting same-named ones. Returns how many were new."""
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise PresetFormatError(f"Content is not valid JSON: {e}") from e

        imported = PresetLibrary.from_payload(payload)
        before = len(self._presets)
        self._presets.update(imported._presets)
        return len(self._presets) - before
