"""
Message catalogs and schema translation.

``Translator`` resolves dotted message keys (``CRUD6.CREATE``) against JSON
catalogs stored per locale. ``SchemaTranslator`` walks a schema and replaces
every string that looks like a message key with its translation, leaving
``{{placeholder}}`` tokens for the client to interpolate.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

from crud6.core.logging_config import debug_log, get_logger

logger = get_logger(__name__)

LOCALE_DIR = Path(__file__).resolve().parent.parent / "locale"
FALLBACK_LOCALE = "en_US"

TRANSLATION_KEY = re.compile(r"^[A-Z][A-Z0-9_.]+\.[A-Z0-9_.]+$")
_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z0-9_.]+)\s*\}\}")
_EMPTY_INTERPOLATION = re.compile(r"\(\s*\)|<strong>\s+\(|>\s{2,}<|\s{2,}")


def _flatten(data: Mapping[str, Any], prefix: str = "") -> Dict[str, str]:
    flat: Dict[str, str] = {}
    for key, value in data.items():
        # Numeric keys carry plural forms, which schemas never reference
        if str(key).isdigit():
            continue
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(_flatten(value, path))
        elif isinstance(value, str):
            flat[path] = value
    return flat


class Translator:
    """Dictionary-backed translator over flattened JSON catalogs."""

    def __init__(self, locale: str = FALLBACK_LOCALE, extra_catalogs: Optional[Iterable[Path]] = None) -> None:
        self.locale = locale
        self._messages: Dict[str, str] = {}
        locales = [FALLBACK_LOCALE] if locale == FALLBACK_LOCALE else [FALLBACK_LOCALE, locale]
        for name in locales:
            self.load_catalog(LOCALE_DIR / name / "messages.json")
        for path in extra_catalogs or ():
            self.load_catalog(Path(path))

    def load_catalog(self, path: Path) -> None:
        if not path.is_file():
            logger.warning(f"Message catalog not found: {path}")
            return
        self._messages.update(_flatten(json.loads(path.read_text(encoding="utf-8"))))

    def add_messages(self, messages: Mapping[str, Any]) -> None:
        self._messages.update(_flatten(messages))

    def has(self, key: str) -> bool:
        return key in self._messages

    def translate(self, key: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """Translate a message key.

        Placeholders with a matching entry in ``params`` are substituted; the
        others are left untouched. Unknown keys are returned unchanged.
        """
        message = self._messages.get(key)
        if message is None:
            return key
        if not params:
            return message

        def _substitute(match: re.Match) -> str:
            name = match.group(1)
            return str(params[name]) if name in params else match.group(0)

        return _PLACEHOLDER.sub(_substitute, message)


class SchemaTranslator:
    def __init__(self, translator: Translator) -> None:
        self.translator = translator

    def translate(self, schema: Dict[str, Any]) -> Dict[str, Any]:
        debug_log(logger, "Translating schema", {"model": schema.get("model", "unknown")})
        return self._translate_value(schema)

    def _translate_value(self, value: Any) -> Any:
        if isinstance(value, dict):
            return {key: self._translate_value(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self._translate_value(item) for item in value]
        if isinstance(value, str):
            return self.translate_string(value)
        return value

    def translate_string(self, value: str) -> str:
        if not TRANSLATION_KEY.match(value):
            return value

        translated = self.translator.translate(value)
        if translated == value:
            debug_log(logger, "Translation key not found", {"key": value})
            return translated

        # Interpolation left visible gaps; hand the key to the client instead
        if _EMPTY_INTERPOLATION.search(translated):
            return value
        return translated
