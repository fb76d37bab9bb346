#!/usr/bin/env python3
"""Seed the translations table from the language files of one or more locales.

Existing rows are never overwritten, so strings edited in the database
survive a re-run.

Usage:
    python scripts/seed_translations.py en [ru ...]
"""

import sys
import os

# Add parent directory to path to import the package
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from db_translations import create_app
from db_translations.extension import get_translator
from db_translations.models import Translation
from db_translations.utils.keys import NO_NAMESPACE, JSON_GROUP


def flatten(lines, prefix=''):
    """Yield (item, text) pairs from a nested group mapping."""
    for key, value in lines.items():
        item = f"{prefix}{key}"
        if isinstance(value, dict):
            yield from flatten(value, f"{item}.")
        elif isinstance(value, str):
            yield item, value


def group_names(lang_path, locale):
    directory = os.path.join(lang_path, locale)
    if not os.path.isdir(directory):
        return []
    return sorted(
        name[:-len('.json')] for name in os.listdir(directory) if name.endswith('.json')
    )


def seed_locale(app, locale):
    loader = get_translator().parent.loader
    created = skipped = 0

    buckets = [(NO_NAMESPACE, JSON_GROUP)]
    buckets += [(NO_NAMESPACE, group) for group in group_names(app.config['TRANSLATIONS_LANG_PATH'], locale)]

    for namespace, group in buckets:
        for item, text in flatten(loader.load(locale, group, namespace)):
            _, was_created = Translation.fetch_or_create(locale, namespace, group, item, text)
            if was_created:
                created += 1
            else:
                skipped += 1

    print(f"  {locale}: {created} created, {skipped} already present")
    return created


def seed_translations(locales):
    app = create_app(os.getenv('FLASK_ENV', 'development'))

    with app.app_context():
        print("Seeding translations from language files...")
        total = sum(seed_locale(app, locale) for locale in locales)
        print(f"\nDone: {total} translation(s) created.")


if __name__ == '__main__':
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    seed_translations(sys.argv[1:])
