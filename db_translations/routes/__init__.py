"""Routes package for the translations service."""


def register_routes(app):
    """Register all route blueprints with the application."""
    from .translations import translations_bp

    app.register_blueprint(translations_bp, url_prefix='/api/translations')
