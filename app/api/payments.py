"""
Payment Routes Blueprint

- /api/payments/process: Charge a pending order through the payment gateway
"""

from flask import Blueprint, current_app, jsonify
import logging

import auth
from database.connection import get_db_session
from services.payment_service import PaymentService
from validators import ensure_valid, validate_payment_request
from app.utils.helpers import get_json_body

logger = logging.getLogger(__name__)

# Create blueprint
payments_bp = Blueprint('payments_bp', __name__)


def get_payment_gateway():
    """Gateway stored on the app by the factory; None means the simulated one"""
    return current_app.extensions.get('payment_gateway')


@payments_bp.route('/api/payments/process', methods=['POST'])
@auth.role_required('client')
def process_payment():
    data = get_json_body()
    ensure_valid(validate_payment_request(data))
    with get_db_session() as session:
        user = auth.load_current_user(session)
        service = PaymentService(
            session,
            gateway=get_payment_gateway(),
            order_prefix=current_app.config.get('ORDER_NUMBER_PREFIX', 'TBX')
        )
        result = service.process_payment(data['orderId'], user.id, data['amount'], data['paymentMethod'])
    return jsonify({'success': True, 'message': 'Payment processed successfully', **result})
