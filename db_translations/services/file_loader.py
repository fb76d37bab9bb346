"""File-based language resources.

Layout under the language path::

    lang/en.json                      JSON-style strings, flat mapping
    lang/en/validation.json           group "validation", nested mapping
    lang/vendor/shop/en/cart.json     overrides for namespace "shop"

A namespace registered with ``add_namespace('shop', '/path/to/shop/lang')``
loads ``/path/to/shop/lang/en/cart.json`` and then applies the vendor
override on top.
"""

import json
import logging
import os

from db_translations.services.filesystem import Filesystem
from db_translations.utils.keys import NO_NAMESPACE, JSON_GROUP, parse_key, is_valid_locale
from db_translations.utils.replacements import make_replacements

logger = logging.getLogger(__name__)


class FileLoader:
    """Read language files from disk."""

    def __init__(self, path, filesystem=None):
        self.path = path
        self.files = filesystem or Filesystem()
        self.hints = {}

    def add_namespace(self, namespace, hint):
        self.hints[namespace] = hint

    def namespaces(self):
        return dict(self.hints)

    def load(self, locale, group, namespace=None):
        if not is_valid_locale(locale):
            return {}

        if group == JSON_GROUP and namespace in (None, NO_NAMESPACE):
            return self._load_json(locale)

        if namespace is None or namespace == NO_NAMESPACE:
            return self._read(os.path.join(self.path, locale, f"{group}.json"))

        return self._load_namespaced(locale, group, namespace)

    def _load_json(self, locale):
        lines = self._read(os.path.join(self.path, f"{locale}.json"))
        # JSON-style files are flat; nested values are not strings we can serve
        return {key: value for key, value in lines.items() if isinstance(value, str)}

    def _load_namespaced(self, locale, group, namespace):
        if namespace not in self.hints:
            return {}

        lines = self._read(os.path.join(self.hints[namespace], locale, f"{group}.json"))
        override = self._read(os.path.join(self.path, 'vendor', namespace, locale, f"{group}.json"))
        return _merge(lines, override)

    def _read(self, path):
        if not self.files.exists(path):
            return {}
        try:
            lines = json.loads(self.files.read(path))
        except ValueError as e:
            raise ValueError(f"Invalid language file {path}: {e}") from e
        if not isinstance(lines, dict):
            raise ValueError(f"Invalid language file {path}: expected a JSON object")
        return lines


def _merge(base, override):
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _lookup(lines, item):
    """Resolve a dotted ``item`` path in a nested group mapping."""
    if item in lines:
        value = lines[item]
    else:
        value = lines
        for part in item.split('.'):
            if not isinstance(value, dict) or part not in value:
                return None
            value = value[part]
    return value if isinstance(value, str) else None


class FileTranslator:
    """Translator over ``FileLoader`` resources.

    Returns the key itself when it has no string for it, which callers use as
    the "nothing found" signal.
    """

    def __init__(self, loader, locale, fallback=None):
        self.loader = loader
        self.locale = locale
        self.fallback = fallback
        self.loaded = {}

    def get_locale(self):
        return self.locale

    def set_locale(self, locale):
        self.locale = locale

    def get_fallback(self):
        return self.fallback

    def set_fallback(self, fallback):
        self.fallback = fallback

    def add_namespace(self, namespace, hint):
        self.loader.add_namespace(namespace, hint)

    def locale_array(self, locale=None):
        locales = []
        for candidate in (locale or self.locale, self.fallback):
            if candidate and candidate not in locales:
                locales.append(candidate)
        return locales

    def is_loaded(self, namespace, group, locale):
        return locale in self.loaded.get(namespace, {}).get(group, {})

    def load(self, namespace, group, locale):
        if self.is_loaded(namespace, group, locale):
            return
        lines = self.loader.load(locale, group, namespace)
        self.loaded.setdefault(namespace, {}).setdefault(group, {})[locale] = lines

    def get(self, key, replacements=None, locale=None, use_fallback=True):
        parsed = parse_key(key)
        if parsed is None:
            return key
        namespace, group, item = parsed

        locales = self.locale_array(locale) if use_fallback else [locale or self.locale]
        for lang in locales:
            self.load(namespace, group, lang)
            line = _lookup(self.loaded[namespace][group][lang], item)
            if line is not None:
                return make_replacements(line, replacements)

        return key

    def json_line(self, key, locale=None):
        """The raw line for ``key`` in the locale's JSON file, or None."""
        locale = locale or self.locale
        self.load(NO_NAMESPACE, JSON_GROUP, locale)
        return self.loaded[NO_NAMESPACE][JSON_GROUP][locale].get(key)

    def get_from_json(self, key, replacements=None, locale=None):
        locale = locale or self.locale
        line = self.json_line(key, locale)

        if line is None:
            # Short keys such as "auth.failed" may live in a group file instead
            fallback = self.get(key, replacements, locale)
            if fallback != key:
                return fallback

        return make_replacements(line if line is not None else key, replacements)
