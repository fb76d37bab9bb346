"""
Pytest configuration and fixtures for the translations service.

Every test gets its own app with an in-memory database and temporary
language and cache directories.
"""

import json
import os
import sys

import pytest
from faker import Faker

# Add the parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from db_translations import create_app, db
from db_translations.extension import get_translator
from db_translations.models import Translation

fake = Faker()

ADMIN_SECRET = 'test-admin-secret'

_FAKE = object()

LANG_FILES = {
    'en.json': {
        'Hello world': 'Hello world',
        'Good morning, :name': 'Good morning, :name',
    },
    'fr.json': {
        'Hello world': 'Bonjour le monde',
    },
    'en/messages.json': {
        'welcome': 'Welcome, :name!',
        'farewell': 'Goodbye',
        'profile': {'title': 'Your profile'},
    },
    'fr/messages.json': {
        'welcome': 'Bienvenue, :name !',
    },
    'en/validation.json': {
        'required': 'The :attribute field is required.',
    },
}


def write_json(path, data):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as fh:
        json.dump(data, fh)


@pytest.fixture
def lang_path(tmp_path):
    """A language directory populated with LANG_FILES."""
    root = tmp_path / 'lang'
    for name, data in LANG_FILES.items():
        write_json(str(root / name), data)
    return str(root)


@pytest.fixture
def cache_dir(tmp_path):
    return str(tmp_path / 'cache' / 'locales')


@pytest.fixture
def app(lang_path, cache_dir):
    """Create application for testing."""
    app = create_app('testing', {
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'TRANSLATIONS_LOCALE': 'en',
        'TRANSLATIONS_FALLBACK_LOCALE': 'en',
        'TRANSLATIONS_LANG_PATH': lang_path,
        'TRANSLATIONS_CACHE_DIR': cache_dir,
        'TRANSLATIONS_ADMIN_SECRET': ADMIN_SECRET,
    })

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client for each test function."""
    return app.test_client()


@pytest.fixture
def db_session(app):
    """Run the test inside an app context and hand out the session."""
    with app.app_context():
        yield db.session
        db.session.rollback()


@pytest.fixture
def translator(db_session):
    """The caching translator of the test's app context."""
    return get_translator()


@pytest.fixture
def admin_headers():
    return {'X-Admin-Secret': ADMIN_SECRET}


@pytest.fixture
def make_translation(db_session):
    """Factory that inserts a committed row; text defaults to a fake sentence."""
    def _make(locale='en', namespace='*', group='messages', item=None, text=_FAKE):
        if item is None:
            item = fake.unique.pystr(min_chars=6, max_chars=12)
        if text is _FAKE:
            text = fake.sentence(nb_words=4)
        return Translation.create(locale, namespace, group, item, text)
    return _make


@pytest.fixture
def cache_file(cache_dir):
    """Expected on-disk location of a bucket snapshot."""
    def _path(locale, group, namespace=None):
        parts = [cache_dir, locale]
        if namespace:
            parts.append(namespace)
        parts.append(f"{group}.json")
        return os.path.join(*parts)
    return _path
