from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_socketio import SocketIO
from dotenv import load_dotenv
from flask_migrate import Migrate
from flask_compress import Compress
import logging

# Load environment variables early so config is available for blueprint creation
load_dotenv()

from quizlive.config import config

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
compress = Compress()
socketio = SocketIO()


def _configure_logging(level_name: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def create_app(overrides: dict | None = None) -> Flask:
    """
    Application factory for the Flask app.
    Loads configuration, binds the database and the Socket.IO server,
    builds the live relay and registers blueprints.
    """
    # Re-initialize config to ensure latest .env values are loaded
    from quizlive.config import Config
    global config
    config = Config()
    config.validate()

    _configure_logging(config.LOG_LEVEL)

    app = Flask(__name__)

    app.config["SECRET_KEY"] = config.SECRET_KEY
    app.config["SQLALCHEMY_DATABASE_URI"] = config.SQLALCHEMY_DATABASE_URI
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = config.SQLALCHEMY_TRACK_MODIFICATIONS
    app.config["SQLALCHEMY_ECHO"] = config.SQLALCHEMY_ECHO
    app.config["SESSION_COOKIE_SECURE"] = config.SESSION_COOKIE_SECURE
    app.config["SESSION_COOKIE_HTTPONLY"] = config.SESSION_COOKIE_HTTPONLY
    app.config["SESSION_COOKIE_SAMESITE"] = config.SESSION_COOKIE_SAMESITE
    app.config["LIVE_CONFIRM_DELAY_MS"] = config.LIVE_CONFIRM_DELAY_MS
    app.config["MIN_PASSWORD_LENGTH"] = config.MIN_PASSWORD_LENGTH
    app.config["VALID_USER_TYPES"] = config.VALID_USER_TYPES
    app.config["DEFAULT_USER_TYPE"] = config.DEFAULT_USER_TYPE

    # Response compression settings
    app.config["COMPRESS_MIMETYPES"] = ['application/json', 'text/html']
    app.config["COMPRESS_LEVEL"] = 6
    app.config["COMPRESS_MIN_SIZE"] = 500

    if overrides:
        app.config.update(overrides)
    app.logger.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))

    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("mysql"):
        # Connection pooling for the MySQL deployment
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
            "pool_size": 10,
            "pool_recycle": 3600,
            "pool_pre_ping": True,
            "max_overflow": 20,
            "connect_args": {"connect_timeout": 5, "charset": "utf8mb4"},
        }

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    compress.init_app(app)
    socketio.init_app(
        app,
        async_mode=app.config.get("SOCKETIO_ASYNC_MODE", config.SOCKETIO_ASYNC_MODE),
        cors_allowed_origins=config.CORS_ALLOWED_ORIGINS,
        message_queue=config.SOCKETIO_MESSAGE_QUEUE or None,
        logger=False,
        engineio_logger=False,
    )

    # One relay per process, handed to the socket handlers explicitly
    from quizlive.realtime import LiveRelay
    from quizlive.realtime.events import register_socket_events
    relay = LiveRelay().init_app(app, socketio)
    register_socket_events(socketio, relay)

    @login_manager.user_loader
    def load_user(user_id):
        from quizlive.auth.models import User
        try:
            return db.session.get(User, int(user_id))
        except (ValueError, TypeError):
            return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'success': False, 'error': 'Authentication required'}), 401

    @app.route("/health")
    def health():
        return jsonify({
            'status': 'OK',
            'env': config.FLASK_ENV or 'development',
            'liveRelay': relay.is_bound,
            'rooms': len(relay.registry.room_names()),
            'sessions': relay.registry.session_count(),
        }), 200

    # Register blueprints
    from quizlive.auth import auth_bp
    app.register_blueprint(auth_bp)

    from quizlive.classes import classes_bp
    app.register_blueprint(classes_bp)

    from quizlive.quiz import quiz_bp, submissions_bp
    app.register_blueprint(quiz_bp)
    app.register_blueprint(submissions_bp)

    @app.errorhandler(404)
    def handle_404(e):
        """Handle 404 errors - return JSON for API routes."""
        path = request.path
        method = request.method
        app.logger.warning(f"404 error: {method} {path}")
        if path.startswith('/api/'):
            return jsonify({
                'success': False,
                'error': f'Route not found: {method} {path}',
                'path': path,
                'method': method
            }), 404
        return f"Page not found: {path}", 404

    @app.errorhandler(405)
    def handle_405(e):
        """Handle 405 Method Not Allowed - return JSON for API routes."""
        path = request.path
        method = request.method
        app.logger.warning(f"405 error: {method} {path}")
        if path.startswith('/api/'):
            return jsonify({
                'success': False,
                'error': f'Method not allowed: {method} {path}',
                'path': path,
                'method': method
            }), 405
        return e

    # Create tables if they do not exist
    with app.app_context():
        from quizlive.auth import models as auth_models  # noqa: F401
        from quizlive.classes import models as class_models  # noqa: F401
        from quizlive.quiz import models as quiz_models  # noqa: F401
        db.create_all()

    return app
