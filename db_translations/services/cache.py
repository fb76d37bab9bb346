"""On-disk cache of translation buckets.

A bucket is the ``item -> text`` mapping of one (namespace, group, locale).
Each bucket is stored as a JSON object at a path derived from the tuple:

    <cache_dir>/<locale>/<group>.json              namespace "*"
    <cache_dir>/<locale>/<namespace>/<group>.json  any other namespace

The reserved JSON group ``*`` is written as ``__json__.json``; the ``*``
sentinels never appear in a path. A file's existence is the cache-hit
signal, and a changed bucket has its file deleted, never rewritten.
"""

import json
import logging
import os

from db_translations.services.filesystem import Filesystem
from db_translations.utils.keys import (
    NO_NAMESPACE,
    JSON_GROUP,
    JSON_GROUP_FILENAME,
    is_safe_group,
    is_safe_segment,
    is_valid_locale,
)

logger = logging.getLogger(__name__)


class BucketCache:
    """Load, store and purge bucket snapshots under ``cache_dir``."""

    def __init__(self, cache_dir, filesystem=None):
        self.cache_dir = cache_dir
        self.files = filesystem or Filesystem()

    def path_for(self, namespace, group, locale):
        if not is_valid_locale(locale):
            raise ValueError(f"Invalid locale for translation cache: {locale!r}")
        if namespace != NO_NAMESPACE and not is_safe_segment(namespace):
            raise ValueError(f"Unsafe translation cache namespace: {namespace!r}")
        if group != JSON_GROUP and not is_safe_group(group):
            raise ValueError(f"Unsafe translation cache group: {group!r}")

        parts = [self.cache_dir, locale]
        if namespace != NO_NAMESPACE:
            parts.append(namespace)
        filename = JSON_GROUP_FILENAME if group == JSON_GROUP else group
        parts.append(f"{filename}.json")
        return os.path.join(*parts)

    def exists(self, namespace, group, locale):
        return self.files.exists(self.path_for(namespace, group, locale))

    def load(self, namespace, group, locale):
        """
        Return the cached mapping, or None when there is no usable snapshot.

        A snapshot that cannot be read or parsed counts as a miss so the
        caller rebuilds it from the database.
        """
        path = self.path_for(namespace, group, locale)
        if not self.files.exists(path):
            return None

        try:
            lines = json.loads(self.files.read(path))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable translation cache {path}: {e}")
            return None

        if not isinstance(lines, dict) or not all(
            isinstance(text, str) or text is None for text in lines.values()
        ):
            logger.warning(f"Ignoring malformed translation cache {path}")
            return None

        return lines

    def store(self, namespace, group, locale, lines):
        """Write a bucket snapshot. OSError propagates."""
        path = self.path_for(namespace, group, locale)
        directory = os.path.dirname(path)
        if not self.files.is_directory(directory):
            self.files.make_directory(directory, 0o755, True)
        self.files.write(path, json.dumps(lines, ensure_ascii=False, sort_keys=True, indent=2))
        return path

    def purge(self, namespace, group, locale):
        """Delete a bucket snapshot. Safe to call when none exists."""
        path = self.path_for(namespace, group, locale)
        deleted = self.files.delete(path)
        if deleted:
            logger.debug(f"Purged translation cache {path}")
        return deleted

    def clear(self):
        """Delete every snapshot."""
        return self.files.delete_directory(self.cache_dir)
