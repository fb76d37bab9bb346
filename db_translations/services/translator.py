"""Database-backed translator with a per-bucket disk cache.

``CachingTranslator`` wraps a file translator (the parent) and resolves keys
through these layers, in order:

    1. buckets already loaded by this instance
    2. the bucket's JSON snapshot in the disk cache
    3. the ``translations`` table (the snapshot is written afterwards)
    4. the parent translator

A key that has never been seen gets a row, seeded with whatever the parent
produced for that locale (or NULL), so every requested key ends up in the
table where it can be translated. Inside a loaded bucket an absent item means
"never looked up" and an item mapped to None means "row exists, no text";
only the former creates a row.

Instances are meant to live for one request/app context. The loaded buckets
are not synchronised and are never evicted; a purge only removes the disk
snapshot.
"""

import logging

from db_translations.models import Translation
from db_translations.utils.keys import (
    NO_NAMESPACE,
    JSON_GROUP,
    parse_key,
    format_code,
    is_valid_locale,
)
from db_translations.utils.replacements import make_replacements

logger = logging.getLogger(__name__)


class CachingTranslator:

    def __init__(self, parent, cache, locale=None, fallback=None):
        self.parent = parent
        self.cache = cache
        self.locale = locale or parent.get_locale()
        self.fallback = fallback if fallback is not None else parent.get_fallback()
        self.loaded = {}

        # The parent must see the same locales we do
        self.parent.set_locale(self.locale)
        self.parent.set_fallback(self.fallback)

    # ------------------------------------------------------------------
    #  Locale handling
    # ------------------------------------------------------------------

    def get_locale(self):
        return self.locale

    def set_locale(self, locale):
        self.parent.set_locale(locale)
        self.locale = locale

    def get_fallback(self):
        return self.fallback

    def set_fallback(self, fallback):
        self.parent.set_fallback(fallback)
        self.fallback = fallback

    def add_namespace(self, namespace, hint):
        self.parent.add_namespace(namespace, hint)

    def locale_array(self, locale=None):
        locales = []
        for candidate in (locale or self.locale, self.fallback):
            if candidate and candidate not in locales:
                locales.append(candidate)
        return locales

    # ------------------------------------------------------------------
    #  Resolution
    # ------------------------------------------------------------------

    def resolve(self, key, replacements=None, locale=None, use_fallback=True):
        """
        Translate ``key``.

        Candidate locales are the requested (or current) locale followed by
        the fallback locale when ``use_fallback`` is set. The first locale
        with text wins; replacements are applied to it. Returns ``key`` when
        no locale has text or the key cannot be parsed.
        """
        parsed = parse_key(key)
        if parsed is None:
            logger.debug(f"Unparseable translation key {key!r}")
            return key
        namespace, group, item = parsed

        locales = self.locale_array(locale) if use_fallback else [locale or self.locale]

        for lang in filter(is_valid_locale, locales):
            line = self._lookup(
                namespace, group, lang, item,
                lambda lang=lang: self._from_parent(self.parent.get(key, {}, lang, False), key),
            )
            if line is not None:
                return make_replacements(line, replacements)

        return key

    def resolve_from_json(self, key, replacements=None, locale=None):
        """
        Translate a JSON-style key (a full sentence used as its own key).

        Looks in the reserved ``("*", "*")`` bucket, falls back to
        ``resolve`` for keys that also look like ``group.item``, and applies
        replacements exactly once.
        """
        locale = locale or self.locale
        if not is_valid_locale(locale):
            return make_replacements(key, replacements)

        line = self._lookup(
            NO_NAMESPACE, JSON_GROUP, locale, key,
            lambda: self._from_parent(self.parent.json_line(key, locale), key),
        )

        if line is None:
            fallback = self.resolve(key, replacements, locale)
            if fallback != key:
                return fallback

        return make_replacements(line if line is not None else key, replacements)

    get = resolve
    get_from_json = resolve_from_json

    @staticmethod
    def _from_parent(line, key):
        if not isinstance(line, str) or line == key:
            return None
        return line

    def _lookup(self, namespace, group, locale, item, default):
        """
        Return the raw text for ``item`` in one locale, or None.

        ``default`` is a callable that asks the parent translator; it is only
        called when the bucket has no text for the item.
        """
        self.ensure_loaded(namespace, group, locale)
        bucket = self.loaded[namespace][group][locale]

        if item not in bucket:
            line = default()
            translation, created = Translation.fetch_or_create(locale, namespace, group, item, line)
            if created:
                logger.info(f"Recorded new translation key {locale}:{format_code(namespace, group, item)}")
            bucket[item] = translation.text
            # A concurrent writer's row wins over our seed
            return translation.text if translation.text is not None else line

        line = bucket[item]
        if line is None:
            line = default()
        return line

    # ------------------------------------------------------------------
    #  Bucket loading and cache
    # ------------------------------------------------------------------

    def is_loaded(self, namespace, group, locale):
        return locale in self.loaded.get(namespace, {}).get(group, {})

    def ensure_loaded(self, namespace, group, locale):
        """Make the (namespace, group, locale) bucket available in memory."""
        if self.is_loaded(namespace, group, locale):
            return

        lines = self.cache.load(namespace, group, locale)
        if lines is None:
            lines = Translation.lines_for(locale, namespace, group)
            self.cache.store(namespace, group, locale, lines)

        self.loaded.setdefault(namespace, {}).setdefault(group, {})[locale] = lines

    load = ensure_loaded

    def purge_cache(self, namespace, group, locale):
        """Delete the disk snapshot of a bucket. Loaded buckets stay as they are."""
        return self.cache.purge(namespace, group, locale)
