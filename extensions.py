"""
Flask extensions initialization
"""
from flask import current_app, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_migrate import Migrate

# Initialize extensions
db = SQLAlchemy()
jwt = JWTManager()
cors = CORS()
migrate = Migrate()


def _unauthenticated(message: str, error: str):
    return jsonify({
        'success': False,
        'message': message,
        'error': error
    }), 401


def init_extensions(app):
    """Initialize all Flask extensions"""
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": app.config.get('CORS_ORIGINS', '*')}})
    migrate.init_app(app, db)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        current_app.logger.info("JWT expired for sub=%s", jwt_payload.get('sub'))
        return _unauthenticated('Token has expired. Please sign in again.', 'token_expired')

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        current_app.logger.info("JWT invalid: %s", error)
        return _unauthenticated('Invalid token. Please sign in again.', 'invalid_token')

    return app
