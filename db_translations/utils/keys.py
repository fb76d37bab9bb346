"""Translation key parsing.

Keys follow the ``namespace::group.item`` convention. Without ``::`` the
namespace is the ``*`` sentinel, so ``validation.required`` parses to
``('*', 'validation', 'required')``. The item may itself contain dots.
"""

import os
import re

NO_NAMESPACE = '*'
JSON_GROUP = '*'
# On-disk name of the JSON group; no real group may take it
JSON_GROUP_FILENAME = '__json__'

_SEPARATORS = {sep for sep in ('/', '\\', os.sep, os.altsep) if sep}

_LOCALE_RE = re.compile(r"[A-Za-z0-9_-]+")


def is_safe_segment(value):
    """Whether ``value`` can be used as a namespace/group (and a path segment)."""
    if not value or not value.strip():
        return False
    if '*' in value or '..' in value:
        return False
    return not any(sep in value for sep in _SEPARATORS)


def is_safe_group(group):
    """A safe segment that does not clash with the JSON group's file name."""
    return is_safe_segment(group) and group != JSON_GROUP_FILENAME


def is_valid_locale(locale):
    """Locales are short identifiers such as ``en`` or ``pt_BR``."""
    return isinstance(locale, str) and bool(_LOCALE_RE.fullmatch(locale))


def parse_key(key):
    """
    Split ``key`` into ``(namespace, group, item)``.

    Returns None for keys that cannot name a single string: empty keys,
    group-only keys (``"validation"``), empty parts or namespace/group values
    that are not safe path segments.
    """
    if not isinstance(key, str) or not key:
        return None

    namespace = NO_NAMESPACE
    rest = key
    if '::' in key:
        namespace, rest = key.split('::', 1)
        if not is_safe_segment(namespace):
            return None

    group, sep, item = rest.partition('.')
    if not sep or not item or not is_safe_group(group):
        return None

    return namespace, group, item


def format_code(namespace, group, item):
    """Inverse of ``parse_key``: the display key for a stored row."""
    if namespace == NO_NAMESPACE:
        return f"{group}.{item}"
    return f"{namespace}::{group}.{item}"
