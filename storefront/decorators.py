# storefront/decorators.py
from functools import wraps
from flask import jsonify, current_app
from flask_login import current_user

def token_required(f):
    """
    Decorator to ensure a valid bearer token is present.
    The request loader has already turned the token into flask_login.current_user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({'message': 'Authorization token is missing or invalid'}), 401
        return f(*args, **kwargs)
    return decorated_function

def admin_required(f):
    """
    Decorator to ensure the user carries the admin role.
    Applies token_required first, so anonymous callers get 401 and others 403.
    """
    @wraps(f)
    @token_required
    def decorated_function(*args, **kwargs):
        if not current_user.is_admin:
            current_app.logger.warning(f"Non-admin access attempt: user id {current_user.id}")
            return jsonify({'message': 'Admin privileges required'}), 403
        return f(*args, **kwargs)
    return decorated_function
