#!/usr/bin/env python
"""Database initialization script for the translations store.

Creates the translations table from the SQLAlchemy model. Deployments that
track schema changes should run `flask db upgrade` instead.

Usage:
    python init_db.py
"""

import os
import sys
from db_translations import create_app, db


def init_database():
    """Initialize the database by creating all tables."""
    config_name = os.getenv('FLASK_ENV', 'development')
    app = create_app(config_name)

    print(f"\n{'='*60}")
    print(f"Database Initialization for {config_name.upper()} Environment")
    print(f"{'='*60}\n")

    with app.app_context():
        try:
            print(f"Database URI: {app.config['SQLALCHEMY_DATABASE_URI']}\n")
            db.create_all()

            from db_translations.models import Translation
            print(f"  ✓ {Translation.__tablename__:<25} - Translated strings per locale/namespace/group/item")
            print(f"\nTranslation cache directory: {app.config['TRANSLATIONS_CACHE_DIR']}")
            print("\nNext steps:")
            print("  1. Seed strings from language files: python scripts/seed_translations.py en")
            print("  2. Start the server: python wsgi.py\n")
            return True

        except Exception as e:
            print(f"❌ Error creating database: {type(e).__name__}: {e}\n")
            return False


if __name__ == '__main__':
    success = init_database()
    sys.exit(0 if success else 1)
