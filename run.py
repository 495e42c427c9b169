# run.py
import os
from storefront import create_app

config_name = os.getenv('FLASK_ENV') or 'default'
app = create_app(config_name)

# --- Flask CLI Commands ---
@app.shell_context_processor
def make_shell_context():
    """Makes variables available in the 'flask shell' context."""
    from storefront import get_db, get_auth_settings
    return {'get_db': get_db, 'get_auth_settings': get_auth_settings, 'app': app}

@app.cli.command('hash-admin-password')
def hash_admin_password_command():
    """Prints a bcrypt hash to use as ADMIN_PASSWORD instead of the plain secret."""
    import click
    from storefront import bcrypt
    password = click.prompt('Admin password', hide_input=True, confirmation_prompt=True)
    print(bcrypt.generate_password_hash(password).decode('utf-8'))

@app.cli.command('expire-orders')
def expire_orders_command():
    """Expires unpaid orders older than ORDER_EXPIRATION_DELTA; meant to run from cron."""
    from storefront import get_db
    from storefront.orders import expire_stale_orders
    expired = expire_stale_orders(get_db(), app.config['ORDER_EXPIRATION_DELTA'])
    print(f"Expired {len(expired)} order(s).")


if __name__ == '__main__':
    # Use app.run() for development only. Use Gunicorn/WSGI for production.
    is_production = os.getenv('FLASK_ENV') == 'production'
    if not is_production:
        app.run(host='0.0.0.0', port=5000,
                debug=app.config.get('DEBUG', False),
                use_reloader=app.config.get('DEBUG', False))
