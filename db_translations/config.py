"""Configuration classes selected by ``create_app(config_name)``."""
import os


def _database_url(default):
    url = os.getenv('DATABASE_URL', default)
    # Some hosts still hand out postgres:// URLs
    if url and url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    SQLALCHEMY_DATABASE_URI = _database_url('sqlite:///translations.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    TRANSLATIONS_LOCALE = os.getenv('APP_LOCALE', 'en')
    TRANSLATIONS_FALLBACK_LOCALE = os.getenv('APP_FALLBACK_LOCALE', 'en')
    # None means "derive from the app" (root_path/lang, instance_path/locales)
    TRANSLATIONS_LANG_PATH = os.getenv('TRANSLATIONS_LANG_PATH')
    TRANSLATIONS_CACHE_DIR = os.getenv('TRANSLATIONS_CACHE_DIR')
    # Admin endpoints are disabled while this is unset
    TRANSLATIONS_ADMIN_SECRET = os.getenv('ADMIN_SECRET')


class DevelopmentConfig(Config):
    DEBUG = True


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    TRANSLATIONS_ADMIN_SECRET = 'test-admin-secret'


class ProductionConfig(Config):
    DEBUG = False


CONFIGS = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
}


def get_config(config_name=None):
    """Return the config class for ``config_name`` (development if unknown)."""
    return CONFIGS.get(config_name or 'development', DevelopmentConfig)
