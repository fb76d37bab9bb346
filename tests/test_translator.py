"""Tests for the caching, database-backed translator."""
import json
import os

import pytest
from sqlalchemy import text

from db_translations import db
from db_translations.extension import get_cache, get_translator
from db_translations.models import Translation
from db_translations.services.cache import BucketCache
from db_translations.services.file_loader import FileLoader, FileTranslator
from db_translations.services.translator import CachingTranslator


@pytest.fixture
def new_translator(db_session, lang_path):
    """Build translators that share the app's disk cache but nothing in memory."""
    def _build(cache=None):
        parent = FileTranslator(FileLoader(lang_path), 'en', 'en')
        return CachingTranslator(parent, cache or get_cache())
    return _build


def rows_for(item):
    return Translation.query.filter_by(item=item).order_by(Translation.locale).all()


class TestResolve:

    def test_existing_row_skips_parent(self, translator, make_translation, monkeypatch):
        make_translation(group='messages', item='hello', text='Hi there')

        def fail(*args, **kwargs):
            raise AssertionError('parent translator should not be consulted')

        monkeypatch.setattr(translator.parent, 'get', fail)

        assert translator.resolve('messages.hello') == 'Hi there'

    def test_replacements_applied(self, translator, make_translation):
        make_translation(group='messages', item='greet', text='Hello :name')
        assert translator.resolve('messages.greet', {'name': 'ann'}) == 'Hello ann'

    def test_absent_key_is_seeded_from_parent(self, translator):
        assert translator.resolve('messages.farewell') == 'Goodbye'

        rows = rows_for('farewell')
        assert len(rows) == 1
        assert rows[0].text == 'Goodbye'
        assert rows[0].bucket == ('*', 'messages', 'en')

    def test_seeded_text_has_no_replacements_baked_in(self, translator):
        assert translator.resolve('messages.welcome', {'name': 'Ann'}) == 'Welcome, Ann!'
        assert rows_for('welcome')[0].text == 'Welcome, :name!'

    def test_second_lookup_does_not_duplicate(self, translator, new_translator):
        translator.resolve('messages.farewell')
        translator.resolve('messages.farewell')
        new_translator().resolve('messages.farewell')

        assert len(rows_for('farewell')) == 1

    def test_unknown_key_returns_key_and_records_null(self, translator):
        assert translator.resolve('messages.unknown') == 'messages.unknown'

        rows = rows_for('unknown')
        assert len(rows) == 1
        assert rows[0].text is None

    def test_null_row_is_not_recreated(self, translator, new_translator):
        translator.resolve('messages.unknown')
        assert new_translator().resolve('messages.unknown') == 'messages.unknown'
        assert len(rows_for('unknown')) == 1

    def test_null_row_still_asks_parent(self, translator, make_translation):
        make_translation(group='messages', item='farewell', text=None)
        assert translator.resolve('messages.farewell') == 'Goodbye'
        assert rows_for('farewell')[0].text is None

    def test_empty_string_is_a_translation(self, translator, make_translation):
        make_translation(group='messages', item='farewell', text='')
        assert translator.resolve('messages.farewell') == ''

    @pytest.mark.parametrize('key', ['Hello world', 'messages', '::x.y', ''])
    def test_malformed_key_returned_unchanged(self, translator, key):
        assert translator.resolve(key) == key
        assert Translation.query.count() == 0

    def test_invalid_locale_is_skipped(self, translator):
        assert translator.resolve('messages.farewell', locale='../en') == 'Goodbye'
        assert [row.locale for row in rows_for('farewell')] == ['en']


class TestFallback:

    def test_requested_locale_wins(self, translator):
        assert translator.resolve('messages.welcome', {'name': 'Ann'}, 'fr') == 'Bienvenue, Ann !'

    def test_falls_back_to_default_locale(self, translator):
        assert translator.resolve('messages.farewell', locale='fr') == 'Goodbye'

        rows = rows_for('farewell')
        assert [(row.locale, row.text) for row in rows] == [('en', 'Goodbye'), ('fr', None)]

    def test_fallback_disabled(self, translator):
        result = translator.resolve('messages.farewell', locale='fr', use_fallback=False)
        assert result == 'messages.farewell'
        assert [row.locale for row in rows_for('farewell')] == ['fr']

    def test_database_text_beats_file_fallback(self, translator, make_translation):
        make_translation(locale='fr', group='messages', item='farewell', text='Au revoir')
        assert translator.resolve('messages.farewell', locale='fr') == 'Au revoir'

    def test_set_locale_reaches_parent(self, translator):
        translator.set_locale('fr')
        translator.set_fallback('de')

        assert translator.get_locale() == 'fr'
        assert translator.parent.get_locale() == 'fr'
        assert translator.parent.get_fallback() == 'de'
        assert translator.resolve('messages.welcome', {'name': 'Ann'}) == 'Bienvenue, Ann !'

    def test_locale_array(self, translator):
        assert translator.locale_array() == ['en']
        assert translator.locale_array('fr') == ['fr', 'en']


class TestJsonKeys:

    def test_json_translation(self, translator):
        assert translator.resolve_from_json('Hello world', locale='fr') == 'Bonjour le monde'
        assert rows_for('Hello world')[0].bucket == ('*', '*', 'fr')

    def test_replacements_applied_once(self, translator):
        result = translator.resolve_from_json('Good morning, :name', {'name': ':name!'})
        assert result == 'Good morning, :name!'

    def test_replacements_applied_once_with_stored_text(self, translator, make_translation):
        make_translation(namespace='*', group='*', item='Hi :name', text='Hey :name')
        assert translator.resolve_from_json('Hi :name', {'name': ':name:name'}) == 'Hey :name:name'

    def test_falls_back_to_group_translation(self, translator):
        assert translator.resolve_from_json('messages.farewell') == 'Goodbye'

    def test_group_fallback_is_not_stored_as_json_text(self, translator):
        assert translator.resolve_from_json('messages.farewell', locale='fr') == 'Goodbye'
        json_row = Translation.find('fr', '*', '*', 'messages.farewell')
        assert json_row.text is None

    def test_unknown_sentence_returns_key(self, translator):
        assert translator.resolve_from_json('Nothing :here', {'here': 'there'}) == 'Nothing there'
        assert rows_for('Nothing :here')[0].text is None

    def test_invalid_locale(self, translator):
        assert translator.resolve_from_json('Hi :name', {'name': 'Ann'}, '../x') == 'Hi Ann'
        assert Translation.query.count() == 0


class TestDiskCache:

    def test_bucket_snapshot_written(self, translator, make_translation, cache_file):
        make_translation(group='messages', item='hello', text='Hello')
        translator.resolve('messages.hello')

        with open(cache_file('en', 'messages'), encoding='utf-8') as fh:
            assert json.load(fh) == {'hello': 'Hello'}

    def test_bucket_loaded_once_per_instance(self, translator, make_translation, monkeypatch):
        make_translation(group='messages', item='a', text='A')
        make_translation(group='messages', item='b', text='B')
        calls = []
        real_lines_for = Translation.lines_for.__func__

        def counting_lines_for(cls, *args):
            calls.append(args)
            return real_lines_for(cls, *args)

        monkeypatch.setattr(Translation, 'lines_for', classmethod(counting_lines_for))

        translator.resolve('messages.a')
        translator.resolve('messages.b')

        assert len(calls) == 1
        assert translator.is_loaded('*', 'messages', 'en')

    def test_snapshot_used_instead_of_database(self, new_translator, make_translation, monkeypatch):
        make_translation(group='messages', item='hello', text='Hello')
        new_translator().resolve('messages.hello')

        def fail(*args, **kwargs):
            raise AssertionError('bucket should come from the disk cache')

        monkeypatch.setattr(Translation, 'lines_for', fail)

        assert new_translator().resolve('messages.hello') == 'Hello'

    def test_stale_until_purged(self, new_translator, make_translation):
        """Writes that bypass the ORM are only seen once the bucket is purged."""
        make_translation(group='messages', item='hello', text='Hello')
        first = new_translator()
        first.resolve('messages.hello')

        db.session.execute(
            text("UPDATE translations SET text = :text WHERE item = :item"),
            {'text': 'Hi', 'item': 'hello'},
        )
        db.session.commit()

        assert new_translator().resolve('messages.hello') == 'Hello'

        assert first.purge_cache('*', 'messages', 'en') is True
        assert new_translator().resolve('messages.hello') == 'Hi'
        # an instance keeps what it already loaded
        assert first.resolve('messages.hello') == 'Hello'

    def test_orm_update_purges_snapshot(self, new_translator, make_translation, cache_file):
        row = make_translation(group='messages', item='hello', text='Hello')
        new_translator().resolve('messages.hello')
        assert os.path.exists(cache_file('en', 'messages'))

        row.text = 'Hi'
        db.session.commit()

        assert not os.path.exists(cache_file('en', 'messages'))
        assert new_translator().resolve('messages.hello') == 'Hi'

    def test_new_key_purges_snapshot(self, new_translator, make_translation, cache_file):
        make_translation(group='messages', item='hello', text='Hello')
        new_translator().resolve('messages.hello')

        new_translator().resolve('messages.farewell')

        assert not os.path.exists(cache_file('en', 'messages'))
        lines = Translation.lines_for('en', '*', 'messages')
        assert lines == {'hello': 'Hello', 'farewell': 'Goodbye'}

    def test_corrupt_snapshot_is_rebuilt(self, new_translator, make_translation, cache_file):
        make_translation(group='messages', item='hello', text='Hello')
        new_translator().resolve('messages.hello')
        path = cache_file('en', 'messages')
        with open(path, 'w', encoding='utf-8') as fh:
            fh.write('not json')

        assert new_translator().resolve('messages.hello') == 'Hello'
        with open(path, encoding='utf-8') as fh:
            assert json.load(fh) == {'hello': 'Hello'}

    def test_unwritable_cache_raises(self, new_translator, make_translation, tmp_path):
        make_translation(group='messages', item='hello', text='Hello')
        blocker = tmp_path / 'blocked'
        blocker.write_text('a file, not a directory')

        broken = new_translator(BucketCache(str(blocker / 'locales')))

        with pytest.raises(OSError):
            broken.resolve('messages.hello')


class TestConcurrentMisses:

    def test_two_translators_create_one_row(self, new_translator):
        first = new_translator()
        second = new_translator()
        # both see the bucket before either records the key
        first.ensure_loaded('*', 'messages', 'en')
        second.ensure_loaded('*', 'messages', 'en')

        assert first.resolve('messages.farewell') == 'Goodbye'
        assert second.resolve('messages.farewell') == 'Goodbye'

        assert len(rows_for('farewell')) == 1

    def test_loser_sees_winner_text(self, new_translator, make_translation):
        loser = new_translator()
        loser.ensure_loaded('*', 'messages', 'en')
        make_translation(group='messages', item='farewell', text='See you')

        assert loser.resolve('messages.farewell') == 'See you'
        assert rows_for('farewell')[0].text == 'See you'


class TestNamespaces:

    def test_namespaced_key(self, translator, tmp_path):
        package = tmp_path / 'shop-lang' / 'en'
        package.mkdir(parents=True)
        (package / 'cart.json').write_text(json.dumps({'empty': 'Cart is empty'}), encoding='utf-8')
        translator.add_namespace('shop', str(tmp_path / 'shop-lang'))

        assert translator.resolve('shop::cart.empty') == 'Cart is empty'
        assert rows_for('empty')[0].bucket == ('shop', 'cart', 'en')

        get_translator().resolve('shop::cart.empty')
        assert len(rows_for('empty')) == 1

    def test_namespace_and_group_buckets_stay_apart(self, translator, make_translation):
        make_translation(namespace='x', group='y', item='item', text='From namespace x')
        make_translation(group='y', item='item', text='From group y')

        assert translator.resolve('x::y.item') == 'From namespace x'
        assert translator.resolve('y.item') == 'From group y'
        assert translator.resolve('x/y.item') == 'x/y.item'
        assert Translation.query.count() == 2

    def test_json_bucket_cannot_be_reached_as_a_group(self, translator, make_translation):
        make_translation(namespace='*', group='*', item='item', text='JSON line')

        assert translator.resolve_from_json('item') == 'JSON line'
        assert translator.resolve('__json__.item') == '__json__.item'
        assert Translation.query.count() == 1
