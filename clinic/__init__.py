# Import important modules and create app package
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
import os

# Load environment variables
load_dotenv()

# Initialize extensions
db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()

def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes', 'on')

def create_app(config=None):
    # Initialize app
    app = Flask(__name__)

    # Configure app from the environment
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev-key')
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///clinic_booking.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['LOG_LEVEL'] = os.environ.get('LOG_LEVEL', 'INFO').upper()
    app.config['SLOT_GENERATION_DAYS'] = int(os.environ.get('SLOT_GENERATION_DAYS', '30'))
    app.config['REVIEWS_AUTO_APPROVE'] = _env_flag('REVIEWS_AUTO_APPROVE', 'true')
    app.config['WTF_CSRF_ENABLED'] = _env_flag('WTF_CSRF_ENABLED', 'false')

    # Explicit settings win over the environment
    if config:
        app.config.update(config)

    app.logger.setLevel(app.config['LOG_LEVEL'])

    # Initialize extensions with app
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': {
            'code': 'UNAUTHORIZED',
            'title': 'Login required',
            'message': 'Please log in to access this page.'
        }}), 401

    # Register blueprints
    from clinic.auth.routes import auth_bp
    from clinic.booking.routes import booking_bp
    from clinic.admin.routes import admin_bp
    from clinic.main.routes import main_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(main_bp)

    _register_error_handlers(app)

    from clinic.cli import register_commands
    register_commands(app)

    # Create database tables
    with app.app_context():
        from clinic import models  # noqa: F401
        db.create_all()
        app.logger.debug("Database tables created")

    return app

def _register_error_handlers(app):
    from clinic.reservations.errors import ReservationError, InternalError

    @app.errorhandler(ReservationError)
    def reservation_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(SQLAlchemyError)
    def database_error(error):
        app.logger.exception("Database error")
        db.session.rollback()
        return jsonify(InternalError().to_dict()), 500

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({'error': {
            'code': error.name.upper().replace(' ', '_'),
            'title': error.name,
            'message': error.description
        }}), error.code
