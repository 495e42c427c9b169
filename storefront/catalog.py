# storefront/catalog.py
import datetime
from flask import Blueprint, jsonify, current_app
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError
from . import get_db
from .orders import effective_max_quantity
from .validations import parse_local_datetime

catalog_bp = Blueprint('catalog', __name__)


def serialize_document(doc):
    data = {k: v.isoformat() if isinstance(v, datetime.datetime) else v for k, v in doc.items()}
    data['id'] = str(data.pop('_id'))
    return data


def serialize_product(product):
    data = serialize_document(product)
    data['effectiveMaxQuantity'] = effective_max_quantity(product)
    return data


def announcement_is_live(announcement, now):
    """Inside its window; an empty bound leaves that side open."""
    start = parse_local_datetime(announcement.get('startAt') or '')
    end = parse_local_datetime(announcement.get('endAt') or '')
    if start and now < start:
        return False
    if end and now > end:
        return False
    return True


@catalog_bp.route('/health')
def health():
    """Simple health check route."""
    return jsonify({"status": "ok"})


@catalog_bp.route('/products', methods=['GET'])
def list_products():
    """Active products, featured first, then by sortOrder."""
    try:
        cursor = get_db().products.find({'isActive': True}).sort(
            [('isFeatured', DESCENDING), ('sortOrder', ASCENDING), ('name', ASCENDING)])
        products = [serialize_product(p) for p in cursor]
    except PyMongoError as e:
        current_app.logger.error(f"Error listing products: {e}")
        return jsonify({'message': 'Could not retrieve products'}), 500
    return jsonify(products), 200


@catalog_bp.route('/products/<string:slug>', methods=['GET'])
def get_product(slug):
    try:
        product = get_db().products.find_one({'slug': slug, 'isActive': True})
    except PyMongoError as e:
        current_app.logger.error(f"Error fetching product {slug}: {e}")
        return jsonify({'message': 'Could not retrieve product'}), 500
    if not product:
        return jsonify({'message': 'Product not found'}), 404
    return jsonify(serialize_product(product)), 200


@catalog_bp.route('/categories', methods=['GET'])
def list_categories():
    try:
        cursor = get_db().categories.find({'isActive': True}).sort('sortOrder', ASCENDING)
        categories = [serialize_document(c) for c in cursor]
    except PyMongoError as e:
        current_app.logger.error(f"Error listing categories: {e}")
        return jsonify({'message': 'Could not retrieve categories'}), 500
    return jsonify(categories), 200


@catalog_bp.route('/announcements', methods=['GET'])
def list_announcements():
    """Active announcements whose time window contains the current server time."""
    # Windows are entered as local wall-clock times
    now = datetime.datetime.now()
    try:
        cursor = get_db().announcements.find({'isActive': True}).sort('createdAt', DESCENDING)
        announcements = [serialize_document(a) for a in cursor if announcement_is_live(a, now)]
    except PyMongoError as e:
        current_app.logger.error(f"Error listing announcements: {e}")
        return jsonify({'message': 'Could not retrieve announcements'}), 500
    return jsonify(announcements), 200
