# config.py
import os
from dotenv import load_dotenv
import datetime

basedir = os.path.abspath(os.path.dirname(__file__))
dotenv_path = os.path.join(basedir, '.env')
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path)
else:
    print("Info: .env file not found. Relying on system environment variables.")


class Config:
    """Base configuration."""
    # Must be set via environment variables in production; signs both tokens and the Flask session.
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'a-very-insecure-fallback-key-for-dev-only'

    FRONTEND_URL = os.environ.get('FRONTEND_URL', 'http://localhost:3000')

    # --- MongoDB Config ---
    MONGO_URI = os.environ.get('MONGO_URI')
    MONGO_DB_NAME = os.environ.get('MONGO_DB_NAME')

    if not MONGO_URI:
        print("CRITICAL WARNING: MONGO_URI environment variable not set!")
    if not MONGO_DB_NAME:
        print("CRITICAL WARNING: MONGO_DB_NAME environment variable not set!")

    # --- Token Settings ---
    JWT_EXPIRATION_DELTA = datetime.timedelta(days=30)

    # --- Orders ---
    # Unpaid orders older than this are expired by `flask expire-orders`, releasing their stock
    ORDER_EXPIRATION_DELTA = datetime.timedelta(
        minutes=int(os.environ.get('ORDER_EXPIRATION_MINUTES', '30')))

    # --- Admin login ---
    # Plain secret or a bcrypt hash ("$2b$..."). Unset disables password login.
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD')
    # Comma separated Linux DO usernames that get the admin role on sign-in
    ADMIN_USERNAMES = os.environ.get('ADMIN_USERNAMES', '')

    # --- Linux DO OAuth2 ---
    LINUXDO_CLIENT_ID = os.environ.get('LINUXDO_CLIENT_ID')
    LINUXDO_CLIENT_SECRET = os.environ.get('LINUXDO_CLIENT_SECRET')
    LINUXDO_AUTHORIZATION_URL = os.environ.get('LINUXDO_AUTHORIZATION_URL', 'https://connect.linux.do/oauth2/authorize')
    LINUXDO_TOKEN_URL = os.environ.get('LINUXDO_TOKEN_URL', 'https://connect.linux.do/oauth2/token')
    LINUXDO_USERINFO_URL = os.environ.get('LINUXDO_USERINFO_URL', 'https://connect.linux.do/api/user')
    LINUXDO_REDIRECT_URI = os.environ.get('LINUXDO_REDIRECT_URI')

    # --- LDC payment gateway (EPay protocol) ---
    LDC_PID = os.environ.get('LDC_PID')
    LDC_KEY = os.environ.get('LDC_KEY')
    LDC_GATEWAY_URL = os.environ.get('LDC_GATEWAY_URL', 'https://credit.linux.do/epay/pay/submit.php')
    LDC_NOTIFY_URL = os.environ.get('LDC_NOTIFY_URL')
    LDC_RETURN_URL = os.environ.get('LDC_RETURN_URL')


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    MONGO_URI = os.environ.get('TEST_MONGO_URI') or 'mongodb://localhost:27017/'
    MONGO_DB_NAME = os.environ.get('TEST_MONGO_DB_NAME') or 'test_storefront_db'
    SECRET_KEY = 'test-secret-key'
    BCRYPT_LOG_ROUNDS = 4
    # Tests opt in to each login method explicitly
    ADMIN_PASSWORD = None
    ADMIN_USERNAMES = ''
    LINUXDO_CLIENT_ID = None
    LINUXDO_CLIENT_SECRET = None
    LDC_PID = None
    LDC_KEY = None


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    if Config.SECRET_KEY == 'a-very-insecure-fallback-key-for-dev-only':
        print("CRITICAL SECURITY WARNING: Default SECRET_KEY is being used in production!")


# Dictionary to access config classes by name
config_by_name = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
