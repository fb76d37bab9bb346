"""Translation routes: key resolution and row administration."""

import hmac
import logging
from functools import wraps

from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import IntegrityError

from db_translations import db
from db_translations.extension import get_translator, get_cache
from db_translations.models import Translation
from db_translations.utils.keys import (
    NO_NAMESPACE,
    JSON_GROUP,
    is_safe_group,
    is_safe_segment,
    is_valid_locale,
)

logger = logging.getLogger(__name__)

translations_bp = Blueprint('translations', __name__)

REQUIRED_FIELDS = ('locale', 'group', 'item')


def check_admin_secret():
    """Check the X-Admin-Secret header against TRANSLATIONS_ADMIN_SECRET.

    Uses hmac.compare_digest for timing-safe comparison. With no secret
    configured every admin request is refused.
    """
    expected = current_app.config.get('TRANSLATIONS_ADMIN_SECRET')
    if not expected:
        return False
    secret = request.headers.get('X-Admin-Secret', '')
    return hmac.compare_digest(secret, expected)


def admin_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        if not check_admin_secret():
            return jsonify({'error': 'Admin access required'}), 403
        return f(*args, **kwargs)
    return decorated


def _is_truthy(value):
    return str(value).lower() in ('1', 'true', 'yes')


@translations_bp.route('/resolve', methods=['GET'])
def resolve_key():
    """Resolve a key through the request's translator.

    Query params:
    - key: translation key (required)
    - locale: locale to resolve in (default: configured locale)
    - fallback: "0" disables the fallback locale
    - json: "1" treats the key as a JSON-style string
    """
    key = request.args.get('key')
    if not key:
        return jsonify({'error': 'key is required'}), 400

    locale = request.args.get('locale') or None
    if locale is not None and not is_valid_locale(locale):
        return jsonify({'error': 'Invalid locale'}), 400
    translator = get_translator()

    if _is_truthy(request.args.get('json', '0')):
        text = translator.resolve_from_json(key, locale=locale)
    else:
        use_fallback = _is_truthy(request.args.get('fallback', '1'))
        text = translator.resolve(key, locale=locale, use_fallback=use_fallback)

    return jsonify({
        'key': key,
        'locale': locale or translator.get_locale(),
        'text': text,
    }), 200


@translations_bp.route('', methods=['GET'])
@admin_required
def list_translations():
    """List rows.

    Query params: locale, namespace, group, missing ("1" = only NULL text).
    """
    query = Translation.query
    for column in ('locale', 'namespace', 'group'):
        value = request.args.get(column)
        if value:
            query = query.filter(getattr(Translation, column) == value)
    if _is_truthy(request.args.get('missing', '0')):
        query = query.filter(Translation.text.is_(None))

    rows = query.order_by(
        Translation.locale, Translation.namespace, Translation.group, Translation.item
    ).all()
    return jsonify({
        'translations': [row.to_dict() for row in rows],
        'total': len(rows),
    }), 200


@translations_bp.route('/<int:translation_id>', methods=['GET'])
@admin_required
def get_translation(translation_id):
    translation = db.session.get(Translation, translation_id)
    if translation is None:
        return jsonify({'error': 'Translation not found'}), 404
    return jsonify(translation.to_dict()), 200


@translations_bp.route('', methods=['POST'])
@admin_required
def create_translation():
    data = request.get_json(silent=True) or {}

    missing = [field for field in REQUIRED_FIELDS if not data.get(field)]
    if missing:
        return jsonify({'error': f"Missing required fields: {', '.join(missing)}"}), 400

    if not is_valid_locale(data['locale']):
        return jsonify({'error': 'Invalid locale'}), 400
    namespace = data.get('namespace') or NO_NAMESPACE
    if namespace != NO_NAMESPACE and not is_safe_segment(namespace):
        return jsonify({'error': 'Invalid namespace'}), 400
    if data['group'] != JSON_GROUP and not is_safe_group(data['group']):
        return jsonify({'error': 'Invalid group'}), 400

    try:
        translation = Translation.create(
            data['locale'], namespace, data['group'], data['item'], data.get('text')
        )
    except IntegrityError:
        return jsonify({'error': 'Translation already exists'}), 409
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating translation: {e}")
        return jsonify({'error': 'Failed to create translation'}), 500

    return jsonify({
        'message': 'Translation created successfully',
        'translation': translation.to_dict(),
    }), 201


@translations_bp.route('/<int:translation_id>', methods=['PUT'])
@admin_required
def update_translation(translation_id):
    """Update the text of a row. The bucket's cache file is purged on commit."""
    translation = db.session.get(Translation, translation_id)
    if translation is None:
        return jsonify({'error': 'Translation not found'}), 404

    data = request.get_json(silent=True) or {}
    if 'text' not in data:
        return jsonify({'error': 'text is required'}), 400

    text = data['text']
    if text is not None and not isinstance(text, str):
        return jsonify({'error': 'text must be a string or null'}), 400

    try:
        translation.text = text
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating translation {translation_id}: {e}")
        return jsonify({'error': 'Failed to update translation'}), 500

    return jsonify({
        'message': 'Translation updated successfully',
        'translation': translation.to_dict(),
    }), 200


@translations_bp.route('/cache/purge', methods=['POST'])
@admin_required
def purge_cache():
    """Delete the cache file of one bucket."""
    data = request.get_json(silent=True) or {}
    if not data.get('locale') or not data.get('group'):
        return jsonify({'error': 'locale and group are required'}), 400

    if not is_valid_locale(data['locale']):
        return jsonify({'error': 'Invalid locale'}), 400
    namespace = data.get('namespace') or NO_NAMESPACE
    if namespace != NO_NAMESPACE and not is_safe_segment(namespace):
        return jsonify({'error': 'Invalid namespace'}), 400
    if data['group'] != JSON_GROUP and not is_safe_group(data['group']):
        return jsonify({'error': 'Invalid group'}), 400

    purged = get_cache().purge(namespace, data['group'], data['locale'])
    return jsonify({'purged': purged}), 200
