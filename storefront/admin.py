# storefront/admin.py
from flask import Blueprint, jsonify, current_app, request
from flask_login import current_user
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError
from . import get_db
from .catalog import serialize_document, serialize_product
from .decorators import admin_required
from .orders import serialize_order
from .validations import (
    AnnouncementSchema, CategorySchema, CreateProductSchema, ProductSchema,
    UpdateAnnouncementSchema, UpdateCategorySchema, UpdateOrderStatusSchema,
    UpdateProductSchema, safe_parse,
)
import datetime
import uuid

admin_bp = Blueprint('admin', __name__)

# Leaving 'pending' for one of these hands the reserved units back to the product
STOCK_RELEASING_STATUSES = ('cancelled', 'expired')


def _now():
    return datetime.datetime.now(datetime.timezone.utc)


def _validation_failed(errors):
    return jsonify({'message': 'Validation failed', 'errors': errors}), 400


def _create_document(collection, schema, label):
    parsed = safe_parse(schema, request.get_json(silent=True))
    if not parsed.success:
        return _validation_failed(parsed.errors)

    now = _now()
    doc = dict(parsed.data, _id=str(uuid.uuid4()), createdAt=now, updatedAt=now)
    try:
        collection.insert_one(doc)
    except DuplicateKeyError:
        return jsonify({'message': f'A {label} with slug "{doc.get("slug")}" already exists'}), 409
    except PyMongoError as e:
        current_app.logger.error(f"Error creating {label}: {e}")
        return jsonify({'message': f'Error creating {label}'}), 500

    current_app.logger.info(f"Admin {current_user.id} created {label} {doc['_id']}")
    return jsonify({'message': f'{label.capitalize()} created successfully', 'id': doc['_id']}), 201


def _update_document(collection, doc_id, update_schema, full_schema, label):
    """Partial update; the merged record must still satisfy the full schema."""
    parsed = safe_parse(update_schema, request.get_json(silent=True))
    if not parsed.success:
        return _validation_failed(parsed.errors)
    update_fields = parsed.data
    if not update_fields:
        return jsonify({'message': 'No valid fields provided for update'}), 400

    try:
        existing = collection.find_one({'_id': doc_id})
        if not existing:
            return jsonify({'message': f'{label.capitalize()} not found'}), 404

        # Cross-field rules (min/max quantity, time window) span old and new values
        merged = safe_parse(full_schema, {**existing, **update_fields})
        if not merged.success:
            return _validation_failed(merged.errors)

        update_fields['updatedAt'] = _now()
        collection.update_one({'_id': doc_id}, {'$set': update_fields})
    except DuplicateKeyError:
        return jsonify({'message': f'A {label} with slug "{update_fields.get("slug")}" already exists'}), 409
    except PyMongoError as e:
        current_app.logger.error(f"Error updating {label} {doc_id}: {e}")
        return jsonify({'message': f'Error updating {label}'}), 500

    updated_keys = [k for k in update_fields if k != 'updatedAt']
    current_app.logger.info(f"Admin {current_user.id} updated {label} {doc_id} fields: {updated_keys}")
    return jsonify({'message': f'{label.capitalize()} updated successfully'}), 200


# === Catalog Management Routes ===

@admin_bp.route('/products', methods=['GET'])
@admin_required
def get_all_products():
    """Every product, including inactive ones."""
    try:
        cursor = get_db().products.find({}).sort('sortOrder', ASCENDING)
        return jsonify([serialize_product(p) for p in cursor]), 200
    except PyMongoError as e:
        current_app.logger.error(f"Error fetching all products: {e}")
        return jsonify({'message': 'Error fetching products'}), 500


@admin_bp.route('/products', methods=['POST'])
@admin_required
def create_product():
    return _create_document(get_db().products, CreateProductSchema, 'product')


@admin_bp.route('/products/<string:product_id>', methods=['PUT', 'PATCH'])
@admin_required
def update_product(product_id):
    return _update_document(get_db().products, product_id, UpdateProductSchema, ProductSchema, 'product')


@admin_bp.route('/categories', methods=['POST'])
@admin_required
def create_category():
    return _create_document(get_db().categories, CategorySchema, 'category')


@admin_bp.route('/categories/<string:category_id>', methods=['PUT', 'PATCH'])
@admin_required
def update_category(category_id):
    return _update_document(get_db().categories, category_id, UpdateCategorySchema, CategorySchema, 'category')


@admin_bp.route('/announcements', methods=['GET'])
@admin_required
def get_all_announcements():
    try:
        cursor = get_db().announcements.find({}).sort('createdAt', DESCENDING)
        return jsonify([serialize_document(a) for a in cursor]), 200
    except PyMongoError as e:
        current_app.logger.error(f"Error fetching announcements: {e}")
        return jsonify({'message': 'Error fetching announcements'}), 500


@admin_bp.route('/announcements', methods=['POST'])
@admin_required
def create_announcement():
    return _create_document(get_db().announcements, AnnouncementSchema, 'announcement')


@admin_bp.route('/announcements/<string:announcement_id>', methods=['PUT', 'PATCH'])
@admin_required
def update_announcement(announcement_id):
    return _update_document(
        get_db().announcements, announcement_id, UpdateAnnouncementSchema, AnnouncementSchema, 'announcement')


# === Order Management Routes ===

@admin_bp.route('/orders', methods=['GET'])
@admin_required
def get_all_orders():
    """Fetches all orders, newest first."""
    try:
        cursor = get_db().orders.find({}).sort('createdAt', DESCENDING)
        return jsonify([serialize_order(o) for o in cursor]), 200
    except PyMongoError as e:
        current_app.logger.error(f"Error fetching all orders: {e}")
        return jsonify({'message': 'Could not retrieve orders'}), 500


@admin_bp.route('/orders/<string:order_id>', methods=['GET'])
@admin_required
def get_order_details(order_id):
    """Fetches details for a specific order (accessible by admin)."""
    try:
        order = get_db().orders.find_one({'_id': order_id})
    except PyMongoError as e:
        current_app.logger.error(f"Error fetching details for order {order_id}: {e}")
        return jsonify({'message': 'Could not retrieve order details'}), 500
    if not order:
        return jsonify({'message': 'Order not found'}), 404
    return jsonify(serialize_order(order)), 200


@admin_bp.route('/orders/<string:order_id>/status', methods=['PUT'])
@admin_required
def update_order_status(order_id):
    """Updates the status of a specific order."""
    data = request.get_json(silent=True) or {}
    parsed = safe_parse(UpdateOrderStatusSchema, dict(data, orderId=order_id))
    if not parsed.success:
        return _validation_failed(parsed.errors)
    new_status = parsed.data['status']

    db = get_db()
    try:
        order = db.orders.find_one({'_id': order_id})
        if not order:
            return jsonify({'message': 'Order not found'}), 404
        if order['status'] == new_status:
            return jsonify({'message': 'Order status was already set to the requested value'}), 200

        update_fields = {'status': new_status, 'updatedAt': _now()}
        if parsed.data.get('adminRemark') is not None:
            update_fields['adminRemark'] = parsed.data['adminRemark']

        # Conditional on the status we read, so a concurrent change is not overwritten
        result = db.orders.update_one({'_id': order_id, 'status': order['status']}, {'$set': update_fields})
        if result.modified_count == 0:
            return jsonify({'message': 'Order was modified concurrently, please retry'}), 409

        if order['status'] == 'pending' and new_status in STOCK_RELEASING_STATUSES:
            db.products.update_one({'_id': order['productId']}, {'$inc': {'stock': order['quantity']}})
            current_app.logger.info(f"Returned {order['quantity']} units of product {order['productId']} to stock")
    except PyMongoError as e:
        current_app.logger.error(f"Error updating status for order {order_id}: {e}")
        return jsonify({'message': 'Error updating order status'}), 500

    current_app.logger.info(f"Admin {current_user.id} updated order {order_id} status to {new_status}")
    return jsonify({'message': 'Order status updated successfully'}), 200
