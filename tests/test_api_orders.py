"""
Tests for the order and payment API
"""
import re
import pytest
from unittest.mock import Mock

from services.payment_service import PaymentGatewayError


@pytest.fixture
def service(make_service):
    return make_service()


def _order_body(service, **overrides):
    body = {
        'serviceId': service['id'],
        'quantity': 1,
        'requirements': 'Five page site with a contact form',
        'contactPreference': 'email',
    }
    body.update(overrides)
    return body


@pytest.fixture
def order(client_http, service):
    response = client_http.post('/api/orders', json=_order_body(service))
    assert response.status_code == 201
    return response.get_json()['order']


def _pay(client_http, order, amount=None):
    return client_http.post('/api/payments/process', json={
        'orderId': order['id'],
        'amount': order['totalAmount'] if amount is None else amount,
        'paymentMethod': 'stripe',
    })


@pytest.mark.integration
class TestOrderEndpoints:
    """Tests for creating and reading orders"""

    def test_create_order(self, order, users):
        """Test that clients place pending orders with a TBX number"""
        assert re.match(r'^TBX-\d{6}$', order['orderNumber'])
        assert order['status'] == 'pending'
        assert order['client']['id'] == users['client']

    def test_staff_cannot_place_orders(self, admin_http, service):
        """Test that order creation is client only"""
        assert admin_http.post('/api/orders', json=_order_body(service)).status_code == 403

    def test_quote_service_rejected(self, client_http, make_service):
        """Test that quote-priced services cannot be ordered directly"""
        quoted = make_service(title='Custom Platform', pricing={'type': 'quote'})
        response = client_http.post('/api/orders', json=_order_body(quoted))
        assert response.status_code == 400
        assert 'quote' in response.get_json()['message']

    def test_other_client_gets_404(self, other_client_http, order):
        """Test that clients cannot see each other's orders"""
        assert other_client_http.get(f"/api/orders/{order['id']}").status_code == 404

    def test_list_orders_scoped(self, client_http, other_client_http, admin_http, order):
        """Test that listings are scoped for clients and global for admins"""
        assert client_http.get('/api/orders').get_json()['pagination']['total'] == 1
        assert other_client_http.get('/api/orders').get_json()['pagination']['total'] == 0
        assert admin_http.get('/api/orders?status=pending').get_json()['pagination']['total'] == 1

    def test_list_requires_login(self, http):
        """Test that anonymous listing is a 401"""
        assert http.get('/api/orders').status_code == 401


@pytest.mark.integration
class TestOrderWorkflowEndpoints:
    """Tests for status updates through the API"""

    def test_payment_then_progress(self, client_http, admin_http, order):
        """Test that an order moves from payment to completion"""
        paid = _pay(client_http, order)
        assert paid.status_code == 200
        assert paid.get_json()['order']['status'] == 'payment_confirmed'
        assert paid.get_json()['transactionId'].startswith('txn_')

        for status in ('in_progress', 'under_review', 'completed'):
            response = admin_http.patch(f"/api/orders/{order['id']}/status", json={'status': status})
            assert response.status_code == 200
        assert response.get_json()['order']['status'] == 'completed'

    def test_invalid_transition_is_409(self, admin_http, order):
        """Test that skipping states is a conflict listing the allowed moves"""
        response = admin_http.patch(f"/api/orders/{order['id']}/status", json={'status': 'completed'})
        assert response.status_code == 409
        body = response.get_json()
        assert body['current'] == 'pending'
        assert body['allowed'] == ['cancelled', 'payment_confirmed']

    def test_status_required(self, admin_http, order):
        """Test that a missing status is a 400"""
        assert admin_http.patch(f"/api/orders/{order['id']}/status", json={}).status_code == 400

    def test_unknown_status_is_400(self, admin_http, order):
        """Test that statuses outside the workflow are validation errors"""
        response = admin_http.patch(f"/api/orders/{order['id']}/status", json={'status': 'shipped'})
        assert response.status_code == 400

    def test_list_status_is_400(self, admin_http, order):
        """Test that a non-string status is a validation error, not a crash"""
        response = admin_http.patch(f"/api/orders/{order['id']}/status", json={'status': ['completed']})
        assert response.status_code == 400
        assert response.get_json()['errors'][0]['field'] == 'status'

    def test_client_cannot_change_status(self, client_http, order):
        """Test that status changes are admin only"""
        response = client_http.patch(f"/api/orders/{order['id']}/status", json={'status': 'cancelled'})
        assert response.status_code == 403

    def test_status_notes_logged(self, admin_http, client_http, order):
        """Test that status notes appear in the communication log"""
        admin_http.patch(f"/api/orders/{order['id']}/status",
                         json={'status': 'cancelled', 'notes': 'Client changed plans'})
        log = client_http.get(f"/api/orders/{order['id']}").get_json()['order']['communication']
        assert log[-1]['message'] == 'Status updated to cancelled. Client changed plans'

    def test_review_after_completion(self, client_http, admin_http, order, http, service):
        """Test that the client reviews a completed order and the rating is public"""
        _pay(client_http, order)
        for status in ('in_progress', 'under_review', 'completed'):
            admin_http.patch(f"/api/orders/{order['id']}/status", json={'status': status})

        response = client_http.post(f"/api/orders/{order['id']}/review", json={'rating': 5, 'comment': 'Superb'})
        assert response.status_code == 200
        rating = http.get(f"/api/services/{service['id']}").get_json()['service']['rating']
        assert rating == {'average': 5, 'count': 1}


@pytest.mark.integration
class TestOrderCommunication:
    """Tests for the order communication log"""

    def test_client_message_and_internal_note(self, client_http, admin_http, order):
        """Test that internal notes stay hidden from the client"""
        assert client_http.post(f"/api/orders/{order['id']}/communication",
                                json={'message': 'Any update?'}).status_code == 201
        assert admin_http.post(f"/api/orders/{order['id']}/communication",
                               json={'message': 'Chase designer', 'isInternal': True}).status_code == 201

        client_log = client_http.get(f"/api/orders/{order['id']}").get_json()['order']['communication']
        admin_log = admin_http.get(f"/api/orders/{order['id']}").get_json()['order']['communication']
        assert [c['message'] for c in client_log] == ['Any update?']
        assert len(admin_log) == 2

    def test_client_internal_note_forbidden(self, client_http, order):
        """Test that clients cannot post internal notes"""
        response = client_http.post(f"/api/orders/{order['id']}/communication",
                                    json={'message': 'secret', 'isInternal': True})
        assert response.status_code == 403

    def test_milestones_and_deliverables(self, admin_http, order):
        """Test that admins track progress on an order"""
        admin_http.post(f"/api/orders/{order['id']}/milestones", json={'title': 'Wireframes'})
        response = admin_http.patch(f"/api/orders/{order['id']}/milestones/0", json={'status': 'in_progress'})
        assert response.get_json()['order']['timeline']['milestones'][0]['status'] == 'in_progress'
        response = admin_http.post(f"/api/orders/{order['id']}/deliverables", json={'name': 'Homepage mockup'})
        assert response.status_code == 201


@pytest.mark.integration
class TestPaymentEndpoint:
    """Tests for /api/payments/process"""

    def test_amount_mismatch(self, client_http, order):
        """Test that paying the wrong amount is a 400"""
        response = _pay(client_http, order, amount=1)
        assert response.status_code == 400
        assert response.get_json()['errors'][0]['field'] == 'amount'

    def test_double_payment_conflict(self, client_http, order):
        """Test that a paid order cannot be paid again"""
        _pay(client_http, order)
        assert _pay(client_http, order).status_code == 409

    def test_invalid_method(self, client_http, order):
        """Test that unsupported payment methods are rejected"""
        response = client_http.post('/api/payments/process', json={
            'orderId': order['id'], 'amount': order['totalAmount'], 'paymentMethod': 'cash'
        })
        assert response.status_code == 400

    def test_gateway_failure_is_502(self, app, client_http, order):
        """Test that gateway errors surface as 502 and the order stays pending"""
        gateway = Mock()
        gateway.charge.side_effect = PaymentGatewayError('card declined')
        app.extensions['payment_gateway'] = gateway

        response = _pay(client_http, order)
        assert response.status_code == 502
        assert client_http.get(f"/api/orders/{order['id']}").get_json()['order']['status'] == 'pending'

    def test_admin_cannot_pay(self, admin_http, order):
        """Test that payments are client only"""
        assert _pay(admin_http, order).status_code == 403
