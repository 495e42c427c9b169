# storefront/payments.py
"""LDC (Linux DO Credit) gateway, which speaks the EPay protocol.

The shopper's browser POSTs a signed form to the gateway; the gateway later
calls the notify URL with the outcome.
"""
import hashlib
import hmac
import datetime
from decimal import Decimal, InvalidOperation
from flask import Blueprint, request, jsonify, current_app, render_template_string
from pymongo.errors import PyMongoError
from . import get_db, get_payment_settings

payments_bp = Blueprint('payments', __name__)

EPAY_TYPE = 'epay'
SIGN_TYPE = 'MD5'
TRADE_SUCCESS = 'TRADE_SUCCESS'

# Autoescaped: field names and values reach the page HTML-escaped.
PAYMENT_FORM_TEMPLATE = """<!doctype html>
<html>
<head><meta charset="utf-8"><title>Redirecting to payment</title></head>
<body onload="document.forms[0].submit()">
<form method="post" action="{{ form.actionUrl }}">
{% for name, value in form.params.items() %}<input type="hidden" name="{{ name }}" value="{{ value }}">
{% endfor %}<noscript><button type="submit">Continue to payment</button></noscript>
</form>
</body>
</html>
"""


def format_money(amount):
    return f"{Decimal(str(amount)).quantize(Decimal('0.01'))}"


def sign_params(params, key):
    """md5("a=1&b=2" + key) over the sorted, non-empty, non-sign params."""
    pairs = [
        f"{name}={value}"
        for name, value in sorted(params.items())
        if name not in ('sign', 'sign_type') and value not in (None, '')
    ]
    return hashlib.md5(('&'.join(pairs) + key).encode('utf-8')).hexdigest()


def verify_signature(params, key):
    signature = params.get('sign') or ''
    # Bytes, since compare_digest rejects non-ASCII str
    return hmac.compare_digest(sign_params(params, key).encode('utf-8'), signature.lower().encode('utf-8'))


def build_payment_form(order_no, product_name, amount, settings):
    """The redirect descriptor: where to POST and which hidden fields to send."""
    params = {
        'pid': settings.pid,
        'type': EPAY_TYPE,
        'out_trade_no': order_no,
        'notify_url': settings.notify_url or '',
        'return_url': settings.return_url or '',
        'name': product_name,
        'money': format_money(amount),
    }
    params = {name: value for name, value in params.items() if value}
    params['sign'] = sign_params(params, settings.key)
    params['sign_type'] = SIGN_TYPE
    return {'actionUrl': settings.gateway_url, 'params': params}


def render_payment_form(form):
    """Auto-submitting HTML page for a redirect descriptor."""
    return render_template_string(PAYMENT_FORM_TEMPLATE, form=form)


@payments_bp.route('/ldc/checkout/<string:order_no>', methods=['GET'])
def ldc_checkout(order_no):
    """Serves the auto-submitting form for a pending order (no-JS fallback)."""
    settings = get_payment_settings()
    if not settings.configured:
        return jsonify({'message': 'Payment method is currently unavailable'}), 503
    try:
        order = get_db().orders.find_one({'orderNo': order_no, 'status': 'pending'})
    except PyMongoError as e:
        current_app.logger.error(f"Error loading order {order_no} for checkout: {e}")
        return jsonify({'message': 'Could not load order'}), 500
    if not order:
        return jsonify({'message': 'Order not found or already processed'}), 404

    form = build_payment_form(order['orderNo'], order['productName'], order['totalAmount'], settings)
    return render_payment_form(form), 200, {'Content-Type': 'text/html; charset=utf-8'}


# --- Notify does NOT require user authentication/token ---
@payments_bp.route('/ldc/notify', methods=['GET', 'POST'])
def ldc_notify():
    """Gateway callback. Answers the literal 'success' once the order is settled."""
    settings = get_payment_settings()
    params = request.values.to_dict()

    if not settings.configured:
        current_app.logger.error("LDC notify received but the gateway is not configured!")
        return 'fail', 500
    if not verify_signature(params, settings.key):
        current_app.logger.error(f"LDC notify signature verification failed for {params.get('out_trade_no')}")
        return 'fail', 400
    if params.get('pid') != settings.pid:
        current_app.logger.error(f"LDC notify for unknown merchant id {params.get('pid')}")
        return 'fail', 400

    order_no = params.get('out_trade_no')
    if params.get('trade_status') != TRADE_SUCCESS:
        current_app.logger.warning(f"LDC notify: order {order_no} trade_status={params.get('trade_status')}")
        return 'success', 200

    try:
        db = get_db()
        order = db.orders.find_one({'orderNo': order_no})
        if not order:
            current_app.logger.error(f"LDC notify: order not found for {order_no}")
            return 'fail', 404

        try:
            paid_amount = Decimal(params.get('money', ''))
        except InvalidOperation:
            paid_amount = None
        if paid_amount != Decimal(format_money(order['totalAmount'])):
            current_app.logger.error(
                f"LDC notify: amount mismatch for {order_no} (paid {params.get('money')}, expected {order['totalAmount']})")
            return 'fail', 400

        if order.get('status') != 'pending':
            current_app.logger.warning(f"LDC notify: order {order_no} already processed (status: {order.get('status')}).")
            return 'success', 200

        now = datetime.datetime.now(datetime.timezone.utc)
        update_result = db.orders.update_one(
            {'_id': order['_id'], 'status': 'pending'},
            {'$set': {
                'status': 'paid',
                'tradeNo': params.get('trade_no'),
                'paidAt': now,
                'updatedAt': now,
            }}
        )
        if update_result.modified_count > 0:
            current_app.logger.info(f"LDC notify: order {order_no} marked 'paid'.")
        else:
            current_app.logger.warning(f"LDC notify: order {order_no} changed concurrently, not updated.")
    except PyMongoError as e:
        current_app.logger.error(f"Error processing LDC notify for {order_no}: {e}")
        return 'fail', 500

    return 'success', 200
