"""Translation model: one translated string per (locale, namespace, group, item)."""

import logging
from datetime import datetime

from flask import current_app, has_app_context
from sqlalchemy import event, inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, column_property

from db_translations import db
from db_translations.signals import translation_saved
from db_translations.utils.keys import NO_NAMESPACE, format_code

logger = logging.getLogger(__name__)

_PENDING_KEY = 'translations_changed_buckets'
_WORK_KEY = 'translations_uncommitted_work'


class Translation(db.Model):
    """A translated string.

    ``text`` is nullable: a row with NULL text records that the key was
    requested but nobody has translated it yet.
    """

    __tablename__ = 'translations'

    id = db.Column(db.Integer, primary_key=True)
    # Old key values must be known at flush time to purge the bucket a row leaves
    locale = column_property(db.Column(db.String(16), nullable=False), active_history=True)
    namespace = column_property(
        db.Column(db.String(100), nullable=False, default=NO_NAMESPACE), active_history=True
    )
    group = column_property(db.Column(db.String(100), nullable=False), active_history=True)
    item = db.Column(db.String(255), nullable=False)
    text = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('locale', 'namespace', 'group', 'item', name='uq_translations_key'),
        db.Index('ix_translations_bucket', 'locale', 'namespace', 'group'),
    )

    def __repr__(self):
        return f'<Translation {self.locale}:{self.code}>'

    @property
    def code(self):
        """Display key, e.g. ``validation.required`` or ``shop::cart.empty``."""
        return format_code(self.namespace, self.group, self.item)

    @property
    def bucket(self):
        return self.namespace, self.group, self.locale

    def to_dict(self):
        return {
            'id': self.id,
            'locale': self.locale,
            'namespace': self.namespace,
            'group': self.group,
            'item': self.item,
            'text': self.text,
            'code': self.code,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def find(cls, locale, namespace, group, item):
        return cls.query.filter_by(
            locale=locale,
            namespace=namespace,
            group=group,
            item=item,
        ).first()

    @classmethod
    def create(cls, locale, namespace, group, item, text=None):
        """
        Insert a new row and commit.

        Raises IntegrityError if the tuple already exists; the session is
        rolled back first so it stays usable.
        """
        translation = cls(
            locale=locale,
            namespace=namespace,
            group=group,
            item=item,
            text=text,
        )
        db.session.add(translation)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise
        return translation

    @classmethod
    def fetch_or_create(cls, locale, namespace, group, item, text=None):
        """
        Return ``(translation, created)`` for the tuple.

        An existing row is returned untouched. Otherwise a row seeded with
        ``text`` is inserted inside a SAVEPOINT; if a concurrent writer
        inserted the same tuple first, only the savepoint is rolled back and
        the winner's row is returned.

        The new row is committed right away unless the session already holds
        other work, in which case it is left to the caller's commit (or
        rollback).
        """
        existing = cls.find(locale, namespace, group, item)
        if existing:
            return existing, False

        commit = not _has_unit_of_work(db.session)
        translation = cls(
            locale=locale,
            namespace=namespace,
            group=group,
            item=item,
            text=text,
        )
        try:
            with db.session.begin_nested():
                db.session.add(translation)
        except IntegrityError:
            logger.info(
                f"Translation {locale}:{format_code(namespace, group, item)} "
                f"was created concurrently, using the existing row"
            )
            existing = cls.find(locale, namespace, group, item)
            if existing is None:
                raise
            return existing, False

        if commit:
            db.session.commit()
        return translation, True

    @classmethod
    def query_rows(cls, locale, namespace=None, group=None):
        """All rows for a locale, optionally narrowed to a namespace and group."""
        query = cls.query.filter_by(locale=locale)
        if namespace is not None:
            query = query.filter_by(namespace=namespace)
        if group is not None:
            query = query.filter_by(group=group)
        return query.order_by(cls.id).all()

    @classmethod
    def lines_for(cls, locale, namespace, group):
        """The ``item -> text`` mapping of one bucket."""
        rows = db.session.query(cls.item, cls.text).filter_by(
            locale=locale,
            namespace=namespace,
            group=group,
        ).all()
        return {item: text for item, text in rows}

    @classmethod
    def missing(cls, locale=None):
        """Rows that were requested but still have no text."""
        query = cls.query.filter(cls.text.is_(None))
        if locale:
            query = query.filter_by(locale=locale)
        return query.order_by(cls.locale, cls.namespace, cls.group, cls.item).all()


# ------------------------------------------------------------------
#  Change notification
# ------------------------------------------------------------------

def _buckets_touched(translation):
    """Current bucket plus the previous one when a key column changed."""
    buckets = {translation.bucket}
    state = inspect(translation)
    old = {}
    for column in ('namespace', 'group', 'locale'):
        history = state.attrs[column].history
        if history.deleted:
            old[column] = history.deleted[0]
    if old:
        buckets.add((
            old.get('namespace', translation.namespace),
            old.get('group', translation.group),
            old.get('locale', translation.locale),
        ))
    return buckets


def _has_unit_of_work(session):
    """Whether the session holds changes, flushed or not, that are not committed yet."""
    return bool(session.new or session.dirty or session.deleted or session.info.get(_WORK_KEY))


@event.listens_for(Session, 'after_flush')
def _collect_changed_buckets(session, flush_context):
    if session.new or session.dirty or session.deleted:
        session.info[_WORK_KEY] = True
    pending = session.info.setdefault(_PENDING_KEY, set())
    for obj in session.new:
        if isinstance(obj, Translation):
            pending.add(obj.bucket)
    for obj in session.dirty:
        if isinstance(obj, Translation) and session.is_modified(obj):
            pending.update(_buckets_touched(obj))
    for obj in session.deleted:
        if isinstance(obj, Translation):
            pending.add(obj.bucket)


@event.listens_for(Session, 'after_commit')
def _send_translation_saved(session):
    # Releasing a SAVEPOINT also fires after_commit; only the outer commit counts
    if session.in_nested_transaction():
        return
    session.info.pop(_WORK_KEY, None)
    pending = session.info.pop(_PENDING_KEY, None)
    if not pending:
        return
    if not has_app_context():
        logger.warning(f"{len(pending)} translation bucket(s) changed outside an app context")
        return

    app = current_app._get_current_object()
    for namespace, group, locale in pending:
        translation_saved.send(app, namespace=namespace, group=group, locale=locale)


@event.listens_for(Session, 'after_soft_rollback')
def _discard_changed_buckets(session, previous_transaction):
    if previous_transaction.parent is not None:
        return
    session.info.pop(_WORK_KEY, None)
    session.info.pop(_PENDING_KEY, None)
