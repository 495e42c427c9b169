# storefront/orders.py
import datetime
import secrets
import uuid
from decimal import Decimal
from flask import Blueprint, request, jsonify, current_app
from flask_login import current_user
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError
from . import bcrypt, get_db, get_payment_settings
from .decorators import token_required
from .errors import BoundsError, NotFoundError, PersistenceFailure, StorefrontError, ValidationError
from .payments import build_payment_form
from .validations import CheckoutSchema, OrderQuerySchema, safe_parse

orders_bp = Blueprint('orders', __name__)

# Payment methods that finish on the gateway's own page
REDIRECT_PAYMENT_METHODS = frozenset({'ldc'})
ORDER_NO_ATTEMPTS = 3


def effective_max_quantity(product):
    """The real purchase ceiling: the per-order limit, capped by what is in stock."""
    return min(product['maxQuantity'], product.get('stock', 0))


def order_total(price, quantity):
    return (Decimal(str(price)) * quantity).quantize(Decimal('0.01'))


def generate_order_no(now=None):
    """Timestamp plus six random digits, e.g. 20261019152301048213."""
    now = now or datetime.datetime.now(datetime.timezone.utc)
    return f"{now:%Y%m%d%H%M%S}{secrets.randbelow(10**6):06d}"


def serialize_order(order):
    """Order as shown to its owner or an admin; the query password never leaves."""
    data = {k: v for k, v in order.items() if k != 'queryPassword'}
    data['id'] = str(data.pop('_id'))
    for field in ('createdAt', 'updatedAt', 'paidAt'):
        if isinstance(data.get(field), datetime.datetime):
            data[field] = data[field].isoformat()
    return data


def _release_stock(db, product_id, quantity):
    try:
        db.products.update_one({'_id': product_id}, {'$inc': {'stock': quantity}})
    except PyMongoError as e:
        current_app.logger.error(f"Could not return {quantity} units to product {product_id}: {e}")


def _insert_order(db, order_doc):
    # orderNo carries a unique index; a collision just draws a new number.
    for attempt in range(ORDER_NO_ATTEMPTS):
        try:
            db.orders.insert_one(order_doc)
            return
        except DuplicateKeyError:
            if attempt == ORDER_NO_ATTEMPTS - 1:
                raise
            order_doc['orderNo'] = generate_order_no()


def place_order(db, data, user=None, payment_settings=None):
    """Validates, reserves stock and persists a pending order.

    Returns ``{'success': True, 'orderNo': ..., 'paymentForm'?: ...}``.
    Business failures raise a StorefrontError subclass; store failures raise
    PersistenceFailure with the detail kept for the log.
    """
    parsed = safe_parse(CheckoutSchema, data)
    if not parsed.success:
        raise ValidationError(parsed.errors[0]['message'], errors=parsed.errors)
    order_input = parsed.data
    product_id = order_input['productId']
    quantity = order_input['quantity']
    payment_method = order_input['paymentMethod']

    needs_redirect = payment_method in REDIRECT_PAYMENT_METHODS
    if needs_redirect and not (payment_settings and payment_settings.configured):
        current_app.logger.error(f"Payment method '{payment_method}' requested but the gateway is not configured")
        raise StorefrontError('Payment method is currently unavailable')

    try:
        product = db.products.find_one({'_id': product_id})
    except PyMongoError as e:
        raise PersistenceFailure(f"product lookup failed: {e}") from e
    if not product or not product.get('isActive'):
        raise NotFoundError('product not found')

    # --- Quantity bounds ---
    minimum = product['minQuantity']
    ceiling = effective_max_quantity(product)
    if ceiling < minimum:
        raise BoundsError('Product is out of stock')
    if quantity < minimum or quantity > ceiling:
        raise BoundsError(f"Quantity must be between {minimum} and {ceiling}")

    total = order_total(product['price'], quantity)
    now = datetime.datetime.now(datetime.timezone.utc)
    order_doc = {
        '_id': str(uuid.uuid4()),
        'orderNo': generate_order_no(now),
        'userId': user.id if user else None,
        'username': user.username if user else None,
        'productId': product_id,
        'productName': product['name'],
        'quantity': quantity,
        'unitPrice': float(product['price']),
        'totalAmount': float(total),
        'email': order_input['email'],
        'queryPassword': bcrypt.generate_password_hash(order_input['queryPassword']).decode('utf-8'),
        'paymentMethod': payment_method,
        'status': 'pending',
        'createdAt': now,
        'updatedAt': now,
    }

    # --- Reserve stock, then persist ---
    # The conditional decrement is the only guard against overselling between requests.
    try:
        reserved = db.products.update_one(
            {'_id': product_id, 'isActive': True, 'stock': {'$gte': quantity}},
            {'$inc': {'stock': -quantity}}
        )
    except PyMongoError as e:
        raise PersistenceFailure(f"stock reservation failed: {e}") from e
    if reserved.modified_count == 0:
        raise BoundsError('Insufficient stock')

    try:
        _insert_order(db, order_doc)
    except PyMongoError as e:
        _release_stock(db, product_id, quantity)
        raise PersistenceFailure(f"order insert failed: {e}") from e

    current_app.logger.info(
        f"Order {order_doc['orderNo']} created: product {product_id} x{quantity}, "
        f"total {total}, user {order_doc['userId'] or 'anonymous'}")

    result = {'success': True, 'orderNo': order_doc['orderNo']}
    if needs_redirect:
        result['paymentForm'] = build_payment_form(
            order_doc['orderNo'], order_doc['productName'], total, payment_settings)
    return result


def create_order(db, data, user=None, payment_settings=None):
    """Boundary around place_order: always returns (result, http_status), never raises for business failures."""
    try:
        return place_order(db, data, user=user, payment_settings=payment_settings), 201
    except PersistenceFailure as e:
        current_app.logger.error(f"Failed to save order: {e.detail}")
        return e.to_dict(), e.status_code
    except StorefrontError as e:
        current_app.logger.info(f"Order rejected: {e.message}")
        return e.to_dict(), e.status_code


def expire_stale_orders(db, max_age, now=None):
    """Marks pending orders older than ``max_age`` as expired and returns their stock.

    Returns the order numbers that were expired.
    """
    now = now or datetime.datetime.now(datetime.timezone.utc)
    cutoff = now - max_age
    stale = list(db.orders.find({'status': 'pending', 'createdAt': {'$lt': cutoff}}))

    expired = []
    for order in stale:
        # Conditional, so an order paid in the meantime keeps its status and stock
        result = db.orders.update_one(
            {'_id': order['_id'], 'status': 'pending'},
            {'$set': {'status': 'expired', 'updatedAt': now}}
        )
        if result.modified_count:
            _release_stock(db, order['productId'], order['quantity'])
            expired.append(order['orderNo'])

    if expired:
        current_app.logger.info(f"Expired {len(expired)} unpaid order(s) created before {cutoff.isoformat()}")
    return expired


@orders_bp.route('/create', methods=['POST'])
def create_order_route():
    """Creates an order. Signing in is optional; the order is linked to the user when present."""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'success': False, 'message': 'No input data provided'}), 400

    user = current_user if current_user.is_authenticated else None
    try:
        result, status = create_order(get_db(), data, user=user, payment_settings=get_payment_settings())
    except Exception as e:
        current_app.logger.exception(f"Unexpected error while creating order: {e}")
        return jsonify({'success': False, 'message': PersistenceFailure.message}), 500
    return jsonify(result), status


@orders_bp.route('/query', methods=['POST'])
def query_order():
    """Looks an order up by order number and the query password chosen at checkout."""
    parsed = safe_parse(OrderQuerySchema, request.get_json(silent=True))
    if not parsed.success:
        return jsonify({'message': 'Validation failed', 'errors': parsed.errors}), 400

    try:
        order = get_db().orders.find_one({'orderNo': parsed.data['orderNo']})
    except PyMongoError as e:
        current_app.logger.error(f"Error querying order {parsed.data['orderNo']}: {e}")
        return jsonify({'message': 'Could not retrieve order'}), 500

    # Same answer for unknown order and wrong password
    if not order or not bcrypt.check_password_hash(order['queryPassword'], parsed.data['queryPassword']):
        return jsonify({'message': 'Order not found or password incorrect'}), 404
    return jsonify(serialize_order(order)), 200


@orders_bp.route('/result/<string:order_no>', methods=['GET'])
def order_result(order_no):
    """Status only, for the page the shopper lands on after paying."""
    try:
        order = get_db().orders.find_one({'orderNo': order_no}, {'orderNo': 1, 'status': 1})
    except PyMongoError as e:
        current_app.logger.error(f"Error fetching result for order {order_no}: {e}")
        return jsonify({'message': 'Could not retrieve order'}), 500
    if not order:
        return jsonify({'message': 'Order not found'}), 404
    return jsonify({'orderNo': order['orderNo'], 'status': order['status']}), 200


@orders_bp.route('/my-orders', methods=['GET'])
@token_required
def get_my_orders():
    """Fetches orders for the currently authenticated user, newest first."""
    try:
        cursor = get_db().orders.find({'userId': current_user.id}).sort('createdAt', DESCENDING)
        orders_list = [serialize_order(order) for order in cursor]
    except PyMongoError as e:
        current_app.logger.error(f"Error fetching orders for user {current_user.id}: {e}")
        return jsonify({'message': 'Could not retrieve orders'}), 500
    return jsonify(orders_list), 200
