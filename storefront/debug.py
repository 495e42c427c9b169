# storefront/debug.py
"""Read-only session and order dumps for troubleshooting user/order linkage.

Admin only: the order dump spans every user.
"""
from flask import Blueprint, jsonify, current_app
from flask_login import current_user
from pymongo import DESCENDING
from pymongo.errors import PyMongoError
from . import get_db
from .decorators import admin_required

debug_bp = Blueprint('debug', __name__)

RECENT_ORDER_LIMIT = 10
# Nothing beyond these leaves the server; in particular no queryPassword.
ORDER_DEBUG_PROJECTION = {'_id': 0, 'orderNo': 1, 'userId': 1, 'username': 1, 'status': 1, 'createdAt': 1}


def _debug_order(order):
    return {
        'orderNo': order.get('orderNo'),
        'userId': order.get('userId'),
        'username': order.get('username'),
        'status': order.get('status'),
        'createdAt': order['createdAt'].isoformat() if order.get('createdAt') else None,
    }


@debug_bp.route('/session', methods=['GET'])
@admin_required
def debug_session():
    """Current session claims, minus anything secret."""
    user = current_user.to_dict()
    return jsonify({
        'status': 'logged_in',
        'session': {
            'user': {key: user[key] for key in ('id', 'name', 'email', 'provider', 'username', 'trustLevel', 'role')},
            'expires': current_user.expires,
        },
    }), 200


@debug_bp.route('/orders', methods=['GET'])
@admin_required
def debug_orders():
    """The caller's latest orders next to the latest orders overall, to compare userIds."""
    db = get_db()
    try:
        user_orders = list(
            db.orders.find({'userId': current_user.id}, ORDER_DEBUG_PROJECTION)
            .sort('createdAt', DESCENDING).limit(RECENT_ORDER_LIMIT))
        recent_orders = list(
            db.orders.find({}, ORDER_DEBUG_PROJECTION)
            .sort('createdAt', DESCENDING).limit(RECENT_ORDER_LIMIT))
    except PyMongoError as e:
        current_app.logger.error(f"[debug] Error fetching orders: {e}")
        return jsonify({'status': 'error', 'message': 'Could not retrieve orders'}), 500

    return jsonify({
        'status': 'logged_in',
        'currentUser': {
            'id': current_user.id,
            'username': current_user.username,
            'provider': current_user.provider,
        },
        'userOrdersCount': len(user_orders),
        'userOrders': [_debug_order(o) for o in user_orders],
        'recentOrdersForDebug': [_debug_order(o) for o in recent_orders],
    }), 200
