"""Flask extension that swaps file translations for database translations.

Usage::

    translations = Translations()
    translations.init_app(app)

    with app.app_context():
        trans('validation.required', {'attribute': 'email'})

One ``CachingTranslator`` is built per application context (and so per
request) around a fresh ``FileTranslator``; the language loader and the
bucket cache are shared by the whole app.
"""

import logging
import os

import click
from flask import current_app, g
from flask.cli import AppGroup

from db_translations.models import Translation
from db_translations.services.cache import BucketCache
from db_translations.services.file_loader import FileLoader, FileTranslator
from db_translations.services.translator import CachingTranslator
from db_translations.signals import translation_saved

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'translations'


class _TranslationsState:
    """Per-app collaborators kept in ``app.extensions``."""

    def __init__(self, loader, cache):
        self.loader = loader
        self.cache = cache


class Translations:

    def __init__(self, app=None, filesystem=None):
        self.filesystem = filesystem
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        app.config.setdefault('TRANSLATIONS_LOCALE', 'en')
        app.config.setdefault('TRANSLATIONS_FALLBACK_LOCALE', 'en')
        if not app.config.get('TRANSLATIONS_LANG_PATH'):
            app.config['TRANSLATIONS_LANG_PATH'] = os.path.join(app.root_path, 'lang')
        if not app.config.get('TRANSLATIONS_CACHE_DIR'):
            app.config['TRANSLATIONS_CACHE_DIR'] = os.path.join(app.instance_path, 'locales')

        loader = FileLoader(app.config['TRANSLATIONS_LANG_PATH'], self.filesystem)
        cache = BucketCache(app.config['TRANSLATIONS_CACHE_DIR'], self.filesystem)
        app.extensions[EXTENSION_KEY] = _TranslationsState(loader, cache)

        translation_saved.connect(_purge_saved_bucket, sender=app)

        app.jinja_env.globals.update(trans=trans, trans_json=trans_json, __=trans_json)
        app.cli.add_command(translations_cli)

        logger.debug(
            f"Translations ready (locale={app.config['TRANSLATIONS_LOCALE']}, "
            f"cache={app.config['TRANSLATIONS_CACHE_DIR']})"
        )

    def add_namespace(self, namespace, hint, app=None):
        """Register the language directory of a namespaced package."""
        app = app or current_app
        _state(app).loader.add_namespace(namespace, hint)


def _state(app=None):
    app = app or current_app
    try:
        return app.extensions[EXTENSION_KEY]
    except KeyError:
        raise RuntimeError(
            "Translations extension is not registered on this app; call init_app() first"
        ) from None


def _purge_saved_bucket(app, namespace, group, locale, **extra):
    _state(app).cache.purge(namespace, group, locale)


def get_cache():
    """The bucket cache of the current app."""
    return _state().cache


def get_translator():
    """The ``CachingTranslator`` of the current application context."""
    translator = g.get('_translator')
    if translator is None:
        state = _state()
        parent = FileTranslator(
            state.loader,
            current_app.config['TRANSLATIONS_LOCALE'],
            current_app.config['TRANSLATIONS_FALLBACK_LOCALE'],
        )
        translator = CachingTranslator(parent, state.cache)
        g._translator = translator
    return translator


def trans(key, replacements=None, locale=None):
    return get_translator().resolve(key, replacements, locale)


def trans_json(key, replacements=None, locale=None):
    return get_translator().resolve_from_json(key, replacements, locale)


# ------------------------------------------------------------------
#  CLI: flask translations ...
# ------------------------------------------------------------------

translations_cli = AppGroup('translations', help='Manage database translations.')


@translations_cli.command('clear-cache')
def clear_cache_command():
    """Delete every cached translation bucket."""
    cache = _state().cache
    if cache.clear():
        click.echo(f"Cleared translation cache in {cache.cache_dir}")
    else:
        click.echo("Translation cache is already empty")


@translations_cli.command('missing')
@click.option('--locale', default=None, help='Only list keys of this locale.')
def missing_command(locale):
    """List keys that were requested but have no text yet."""
    rows = Translation.missing(locale)
    for row in rows:
        click.echo(f"{row.locale}\t{row.code}")
    click.echo(f"{len(rows)} missing translation(s)")
