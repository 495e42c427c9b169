# storefront/__init__.py
import os
import jwt
from flask import Flask, g, current_app, jsonify
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from config import config_by_name
from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from .settings import AuthSettings, PaymentSettings

bcrypt = Bcrypt()
login_manager = LoginManager()
# Sessions are bearer tokens; the cookie session only carries the OAuth state.
login_manager.session_protection = None

AUTH_SETTINGS_KEY = 'storefront.auth'
PAYMENT_SETTINGS_KEY = 'storefront.payments'

# --- MongoDB Helper ---
def get_db():
    """Opens a new database connection if there is none yet for the current app context."""
    if 'db_client' not in g:
        mongo_uri = current_app.config.get('MONGO_URI')
        if not mongo_uri:
            raise ValueError("MONGO_URI not set in the configuration")
        g.db_client = MongoClient(mongo_uri)
        db_name = current_app.config.get('MONGO_DB_NAME')
        if not db_name:
            raise ValueError("MONGO_DB_NAME not set in the configuration")
        g.db = g.db_client[db_name]
    return g.db

def close_db(e=None):
    """Closes the database connection at the end of the request."""
    db_client = g.pop('db_client', None)
    g.pop('db', None)
    if db_client is not None:
        db_client.close()

def ensure_indexes(db):
    db.orders.create_index([('orderNo', ASCENDING)], unique=True)
    db.orders.create_index([('userId', ASCENDING), ('createdAt', DESCENDING)])
    db.orders.create_index([('createdAt', DESCENDING)])
    db.products.create_index([('slug', ASCENDING)], unique=True)
    db.categories.create_index([('slug', ASCENDING)], unique=True)

def get_auth_settings():
    return current_app.extensions[AUTH_SETTINGS_KEY]

def get_payment_settings():
    return current_app.extensions[PAYMENT_SETTINGS_KEY]

@login_manager.request_loader
def load_user_from_request(request):
    """Builds the current user from an 'Authorization: Bearer <token>' header."""
    from .identity import decode_token, project_session
    from .models import SessionUser

    auth_header = request.headers.get('Authorization')
    if not auth_header or not auth_header.startswith('Bearer '):
        return None
    token = auth_header[len('Bearer '):].strip()
    if not token:
        return None

    try:
        claims = decode_token(token, get_auth_settings())
    except jwt.ExpiredSignatureError:
        current_app.logger.info("Expired token presented")
        return None
    except jwt.InvalidTokenError as e:
        current_app.logger.warning(f"Invalid token received: {e}")
        return None

    session = project_session(claims)
    if not session['user']['id']:
        current_app.logger.warning("Token payload invalid (missing id and sub)")
        return None
    return SessionUser(session)

@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'message': 'Authorization token is missing or invalid'}), 401

def create_app(config_name=None, config_override=None):
    """Application Factory Function"""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'default')

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_by_name[config_name])
    if config_override:
        app.config.update(config_override)

    # Initialize extensions
    bcrypt.init_app(app)
    login_manager.init_app(app)

    # Settings are read from the config exactly once, here.
    auth_settings = AuthSettings.from_config(app.config)
    app.extensions[AUTH_SETTINGS_KEY] = auth_settings
    app.extensions[PAYMENT_SETTINGS_KEY] = PaymentSettings.from_config(app.config)

    origins = [url for url in (app.config.get('FRONTEND_URL'),) if url]
    CORS(
        app,
        origins=origins or "*",
        supports_credentials=bool(origins),
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"]
    )

    # Register teardown function to close DB connection
    app.teardown_appcontext(close_db)

    with app.app_context():
        if not auth_settings.credentials_enabled:
            current_app.logger.error("ADMIN_PASSWORD is not set; admin password login is disabled.")
        if not auth_settings.oauth_enabled:
            current_app.logger.info("Linux DO OAuth client is not configured; OAuth login is disabled.")

        try:
            ensure_indexes(get_db())
            current_app.logger.info("MongoDB indexes ensured.")
        except (PyMongoError, ValueError) as e:
            current_app.logger.error(f"MongoDB setup failed: {e}")

        # Import and register Blueprints
        from .auth import auth_bp
        from .admin import admin_bp
        from .catalog import catalog_bp
        from .debug import debug_bp
        from .orders import orders_bp
        from .payments import payments_bp

        app.register_blueprint(catalog_bp, url_prefix='/api')
        app.register_blueprint(auth_bp, url_prefix='/api/auth')
        app.register_blueprint(orders_bp, url_prefix='/api/orders')
        app.register_blueprint(payments_bp, url_prefix='/api/payments')
        app.register_blueprint(admin_bp, url_prefix='/api/admin')
        app.register_blueprint(debug_bp, url_prefix='/api/debug')

    return app
