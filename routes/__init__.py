"""
API Routes package
"""
from .refund_requests import refund_requests_bp
from .refunds import refunds_bp

__all__ = [
    'refund_requests_bp',
    'refunds_bp'
]


def register_blueprints(app):
    """Register all API blueprints"""
    app.register_blueprint(refund_requests_bp, url_prefix='/api/refund-requests')
    app.register_blueprint(refunds_bp, url_prefix='/api/refunds')

    return app
