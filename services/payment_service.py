"""
Payment processing against a simulated gateway.

The gateway only hands out transaction ids; confirming the order is
OrderRepository.confirm_payment's job.
"""

import logging
import time
from typing import Dict

from sqlalchemy.orm import Session

from errors import InvalidTransitionError, NotFoundError, UpstreamError, ValidationError
from services.order_service import OrderRepository
from validators import PAYMENT_METHODS
from workflows import ORDER_WORKFLOW

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """Raised by a gateway when a charge cannot be completed"""


class SimulatedPaymentGateway:
    """Stand-in for Stripe/PayPal: every charge succeeds with txn_<millis>."""

    name = 'simulated'

    def charge(self, amount: float, currency: str, method: str, metadata: Dict = None) -> Dict:
        if method not in PAYMENT_METHODS:
            raise PaymentGatewayError(f"Unsupported payment method: {method}")
        transaction_id = f"txn_{int(time.time() * 1000)}"
        logger.debug(f"Simulated {method} charge of {amount} {currency}: {transaction_id}")
        return {
            'transactionId': transaction_id,
            'status': 'succeeded',
            'amount': amount,
            'currency': currency
        }


class PaymentService:
    """Charges an order's client and confirms the order on success."""

    def __init__(self, session: Session, gateway=None, order_prefix: str = 'TBX'):
        self.session = session
        self.gateway = gateway or SimulatedPaymentGateway()
        self.orders = OrderRepository(session, number_prefix=order_prefix)

    def process_payment(self, order_id: str, client_id: str, amount: float, method: str) -> Dict:
        """
        Charge a pending order.

        Raises:
            NotFoundError: order missing or owned by another client
            InvalidTransitionError: order is not awaiting payment
            ValidationError: amount differs from the order total
            UpstreamError: the gateway failed
        """
        order = self.orders.get_order_model(order_id)
        if order.client_id != client_id:
            raise NotFoundError('Order', order_id)
        if order.status != 'pending':
            raise InvalidTransitionError('Order', order.status, 'payment_confirmed',
                                         ORDER_WORKFLOW.allowed_transitions(order.status))
        if abs(float(amount) - float(order.total_amount)) > 0.005:
            raise ValidationError("Payment amount does not match order total", field='amount')

        currency = (order.pricing or {}).get('currency', 'USD')
        try:
            charge = self.gateway.charge(order.total_amount, currency, method,
                                         metadata={'orderId': order.id, 'orderNumber': order.order_number})
        except PaymentGatewayError as e:
            logger.error(f"Payment gateway failed for order {order.order_number}: {e}")
            raise UpstreamError(str(e), service='payment_gateway') from e

        confirmed = self.orders.confirm_payment(order.id, method, charge['transactionId'])
        logger.info(f"Processed {method} payment for order {order.order_number}")
        return {
            'transactionId': charge['transactionId'],
            'order': confirmed
        }
