"""Shared helpers for key handling and placeholder substitution."""

from db_translations.utils.keys import (
    NO_NAMESPACE,
    JSON_GROUP,
    JSON_GROUP_FILENAME,
    parse_key,
    format_code,
    is_safe_segment,
    is_safe_group,
    is_valid_locale,
)
from db_translations.utils.replacements import make_replacements

__all__ = [
    'NO_NAMESPACE',
    'JSON_GROUP',
    'JSON_GROUP_FILENAME',
    'parse_key',
    'format_code',
    'is_safe_segment',
    'is_safe_group',
    'is_valid_locale',
    'make_replacements',
]
