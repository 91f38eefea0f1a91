"""
Tests for payment processing
"""
import re
import pytest
from unittest.mock import Mock

from errors import InvalidTransitionError, NotFoundError, UpstreamError, ValidationError
from services.order_service import OrderRepository
from services.payment_service import PaymentGatewayError, PaymentService, SimulatedPaymentGateway


@pytest.fixture
def order(db_session, users, fixed_service):
    return OrderRepository(db_session).create_order(users['client'], {
        'serviceId': fixed_service['id'],
        'quantity': 2,
        'requirements': 'Two landing pages for the spring campaign',
        'contactPreference': 'chat',
    })


@pytest.mark.unit
class TestSimulatedGateway:
    """Tests for the simulated gateway"""

    def test_charge_returns_transaction_id(self):
        """Test that charges succeed with a txn_<millis> id"""
        charge = SimulatedPaymentGateway().charge(100, 'USD', 'stripe')
        assert re.match(r'^txn_\d+$', charge['transactionId'])
        assert charge['status'] == 'succeeded'

    def test_unknown_method(self):
        """Test that unsupported methods fail"""
        with pytest.raises(PaymentGatewayError):
            SimulatedPaymentGateway().charge(100, 'USD', 'cash')


@pytest.mark.unit
class TestProcessPayment:
    """Tests for charging orders"""

    def test_successful_payment_confirms_order(self, db_session, users, order):
        """Test that a matching payment confirms the order"""
        result = PaymentService(db_session).process_payment(order['id'], users['client'], 1000, 'paypal')
        confirmed = result['order']
        assert confirmed['status'] == 'payment_confirmed'
        assert confirmed['payment']['status'] == 'completed'
        assert confirmed['payment']['method'] == 'paypal'
        assert confirmed['payment']['transactionId'] == result['transactionId']

    def test_amount_mismatch(self, db_session, users, order):
        """Test that the amount must match the order total"""
        with pytest.raises(ValidationError) as exc_info:
            PaymentService(db_session).process_payment(order['id'], users['client'], 999, 'stripe')
        assert exc_info.value.field == 'amount'

    def test_other_clients_order(self, db_session, users, order):
        """Test that paying someone else's order reads as not found"""
        with pytest.raises(NotFoundError):
            PaymentService(db_session).process_payment(order['id'], users['other_client'], 1000, 'stripe')

    def test_already_paid(self, db_session, users, order):
        """Test that a second payment is an invalid transition"""
        service = PaymentService(db_session)
        service.process_payment(order['id'], users['client'], 1000, 'stripe')
        with pytest.raises(InvalidTransitionError) as exc_info:
            service.process_payment(order['id'], users['client'], 1000, 'stripe')
        assert exc_info.value.current == 'payment_confirmed'

    def test_gateway_failure_is_upstream_error(self, db_session, users, order):
        """Test that gateway failures surface as 502 and leave the order pending"""
        gateway = Mock()
        gateway.charge.side_effect = PaymentGatewayError('card declined')

        with pytest.raises(UpstreamError) as exc_info:
            PaymentService(db_session, gateway=gateway).process_payment(order['id'], users['client'], 1000, 'stripe')

        assert exc_info.value.status_code == 502
        assert exc_info.value.service == 'payment_gateway'
        assert OrderRepository(db_session).get_order(order['id'])['status'] == 'pending'
