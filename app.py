"""
Marketplace Refunds - Flask Backend Application
Main entry point
"""
import os
from pathlib import Path

from flask import Flask, jsonify, request
from dotenv import load_dotenv

# Load environment variables
# Always load `.env` next to this file (if it exists) regardless of the
# current working directory.
#
# IMPORTANT for production: do NOT override real environment variables
# injected by the host.
_is_production = os.getenv('FLASK_ENV', 'development') == 'production'
_dotenv_path = Path(__file__).resolve().parent / '.env'
if _dotenv_path.exists():
    load_dotenv(dotenv_path=_dotenv_path, override=(not _is_production))

# Import extensions and routes
from extensions import init_extensions, db
from config.database import SQLALCHEMY_DATABASE_URI, SQLALCHEMY_TRACK_MODIFICATIONS
from config.settings import get_config
from routes import register_blueprints
from services.errors import RefundServiceError


def create_app(config_class=None):
    """Application factory pattern"""
    app = Flask(__name__)

    # Disable strict slashes to prevent 308 redirects
    app.url_map.strict_slashes = False

    # Load configuration
    if config_class is None:
        config_class = get_config()

    app.config.from_object(config_class)
    # Testing configs pin their own database.
    app.config.setdefault('SQLALCHEMY_DATABASE_URI', SQLALCHEMY_DATABASE_URI)
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = SQLALCHEMY_TRACK_MODIFICATIONS

    # Initialize extensions
    init_extensions(app)

    # Register blueprints
    register_blueprints(app)

    # Health check endpoint
    @app.route('/api/health', methods=['GET'])
    def health_check():
        return jsonify({
            'success': True,
            'message': f"{app.config['APP_NAME']} is running",
            'version': app.config['APP_VERSION']
        }), 200

    @app.route('/api', methods=['GET'])
    def api_index():
        return jsonify({
            'name': app.config['APP_NAME'],
            'version': app.config['APP_VERSION'],
            'description': 'Refund request and settlement API for the marketplace',
            'endpoints': {
                'refundRequests': '/api/refund-requests',
                'refunds': '/api/refunds',
                'health': '/api/health'
            }
        }), 200

    # Error handlers
    @app.errorhandler(RefundServiceError)
    def refund_service_error(error):
        if error.status_code >= 500:
            app.logger.error("%s %s failed: %s", request.method, request.path, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'success': False, 'message': 'Resource not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        allowed = getattr(error, 'valid_methods', None)
        allowed_str = f" Allowed: {', '.join(sorted(set(allowed)))}" if allowed else ''

        # Include method/path so client logs reveal what endpoint was called.
        msg = f"Method not allowed ({request.method} {request.path}).{allowed_str}".strip()
        return jsonify({'success': False, 'message': msg}), 405

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({
            'success': False,
            'message': 'Internal server error'
        }), 500

    return app


# Create application instance
app = create_app()


if __name__ == '__main__':
    # Development server
    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('DEBUG', 'False').lower() == 'true'

    print(f"""
    ╔══════════════════════════════════════════════════════════╗
    ║         Marketplace Refunds - Backend Server             ║
    ╠══════════════════════════════════════════════════════════╣
    ║  Local: http://localhost:{port:<32}║
    ║  Debug mode: {debug!s:<44}║
    ║                                                          ║
    ║  Endpoints:                                              ║
    ║  • POST /api/refund-requests          - Request refund   ║
    ║  • GET  /api/refund-requests          - List requests    ║
    ║  • POST /api/refund-requests/<id>/actions - Approve/reject║
    ║  • POST /api/refunds/initiate         - Settle refund    ║
    ║  • GET  /api/refunds                  - List refunds     ║
    ╚══════════════════════════════════════════════════════════╝
    """)

    app.run(host='0.0.0.0', port=port, debug=debug, use_reloader=False)
