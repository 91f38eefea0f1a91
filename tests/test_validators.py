"""
Tests for input validation utilities
"""
import pytest

from errors import ValidationError
from validators import (
    validate_required_fields,
    validate_email,
    validate_id,
    validate_string_length,
    validate_number_range,
    validate_integer,
    validate_choice,
    sanitize_string,
    validate_order_request,
    validate_quote_request,
    validate_quote_response,
    validate_service_request,
    validate_chat_request,
    validate_message_request,
    validate_payment_request,
    validate_review_request,
    ensure_valid,
    CONTACT_PREFERENCES,
)

VALID_ID = '3f2b8c1e-6a4d-4e1f-9b7c-2d5e8a9f0c11'


def _fields(result):
    return [error['field'] for error in result[1]]


@pytest.mark.unit
class TestRequiredFields:
    """Tests for required fields validation"""

    def test_validate_all_fields_present(self):
        """Test validation passes when all fields present"""
        data = {'name': 'John', 'email': 'john@example.com'}
        is_valid, error = validate_required_fields(data, ['name', 'email'])
        assert is_valid is True
        assert error is None

    def test_validate_missing_field(self):
        """Test validation fails when field missing"""
        is_valid, error = validate_required_fields({'name': 'John'}, ['name', 'email'])
        assert is_valid is False
        assert 'email' in error

    def test_validate_empty_and_none_fields(self):
        """Test empty strings and None count as missing"""
        assert validate_required_fields({'a': ''}, ['a'])[0] is False
        assert validate_required_fields({'a': None}, ['a'])[0] is False


@pytest.mark.unit
class TestPrimitives:
    """Tests for primitive field validators"""

    def test_valid_email(self):
        """Test valid email passes"""
        assert validate_email('user@mail.example.com') == (True, None)

    def test_invalid_emails(self):
        """Test malformed and oversized emails fail"""
        assert validate_email('invalidemail.com')[0] is False
        assert validate_email('test@')[0] is False
        assert validate_email('')[0] is False
        assert validate_email('a' * 250 + '@example.com')[0] is False

    def test_validate_id(self):
        """Test UUID-like ids pass and junk fails"""
        assert validate_id(VALID_ID)[0] is True
        assert validate_id('not an id!')[0] is False
        assert validate_id(None)[0] is False

    def test_string_length_is_measured_after_strip(self):
        """Test surrounding whitespace does not count toward the minimum"""
        assert validate_string_length('   abc   ', min_length=5)[0] is False
        assert validate_string_length('abcdef', max_length=5)[0] is False
        assert validate_string_length(123)[0] is False

    def test_number_range_rejects_booleans(self):
        """Test booleans are not accepted as numbers"""
        assert validate_number_range(True)[0] is False
        assert validate_number_range(5, min_value=1, max_value=10)[0] is True
        assert validate_number_range(0, min_value=1)[0] is False

    def test_integer(self):
        """Test floats are not integers"""
        assert validate_integer(2, min_value=1)[0] is True
        assert validate_integer(1.5)[0] is False

    def test_choice(self):
        """Test enum membership"""
        assert validate_choice('chat', CONTACT_PREFERENCES)[0] is True
        is_valid, error = validate_choice('fax', CONTACT_PREFERENCES)
        assert is_valid is False
        assert 'email' in error

    def test_sanitize_string(self):
        """Test null bytes are removed and length limited"""
        assert sanitize_string('  he\x00llo  ') == 'hello'
        assert len(sanitize_string('a' * 50, max_length=10)) == 10
        assert sanitize_string(42) == '42'


@pytest.mark.unit
class TestOrderRequestValidation:
    """Tests for order request validation"""

    def test_valid_order_request(self):
        """Test a complete order request passes"""
        data = {
            'serviceId': VALID_ID,
            'quantity': 2,
            'requirements': 'Five page site with contact form',
            'contactPreference': 'email',
        }
        assert validate_order_request(data) == (True, [])

    def test_order_request_reports_every_bad_field(self):
        """Test every invalid field is listed"""
        data = {'serviceId': 'x', 'quantity': 0, 'requirements': 'short', 'contactPreference': 'fax'}
        is_valid, errors = validate_order_request(data)
        assert is_valid is False
        assert set(_fields((is_valid, errors))) == {
            'serviceId', 'quantity', 'requirements', 'contactPreference'
        }

    def test_quantity_defaults_to_one(self):
        """Test a missing quantity is treated as 1"""
        data = {'serviceId': VALID_ID, 'requirements': 'Five page site with contact form',
                'contactPreference': 'chat'}
        assert validate_order_request(data)[0] is True


@pytest.mark.unit
class TestQuoteRequestValidation:
    """Tests for quote request and response validation"""

    def test_valid_quote_request(self):
        """Test valid quote request passes"""
        data = {
            'serviceId': VALID_ID,
            'customAmount': 750,
            'requirements': 'Custom CRM integration with reporting',
            'contactPreference': 'phone',
            'priority': 'high',
        }
        assert validate_quote_request(data)[0] is True

    def test_quote_amount_must_be_at_least_one(self):
        """Test customAmount below 1 is rejected"""
        data = {'serviceId': VALID_ID, 'customAmount': 0.5,
                'requirements': 'Custom CRM integration', 'contactPreference': 'email'}
        assert _fields(validate_quote_request(data)) == ['customAmount']

    def test_quote_attachments_must_be_a_list(self):
        """Test attachments are type checked"""
        data = {'serviceId': VALID_ID, 'customAmount': 10, 'requirements': 'Custom CRM integration',
                'contactPreference': 'email', 'attachments': 'file.pdf'}
        assert _fields(validate_quote_request(data)) == ['attachments']

    def test_quote_response_accepts_message_alias(self):
        """Test 'message' is accepted in place of 'response'"""
        assert validate_quote_response({'quotedAmount': 450, 'message': 'Can do'})[0] is True
        assert _fields(validate_quote_response({'quotedAmount': -1, 'response': ''})) == [
            'quotedAmount', 'response'
        ]


@pytest.mark.unit
class TestServiceRequestValidation:
    """Tests for service validation"""

    def _service(self, **overrides):
        data = {
            'title': 'Cloud Migration',
            'description': 'Move your workloads to a managed cloud platform.',
            'category': 'Cloud Services',
            'pricing': {'type': 'fixed', 'amount': 1200},
            'features': [{'name': 'Assessment'}],
            'deliveryTime': '1 month',
        }
        data.update(overrides)
        return data

    def test_valid_service(self):
        """Test valid service passes"""
        assert validate_service_request(self._service()) == (True, [])

    def test_fixed_pricing_requires_amount(self):
        """Test fixed and hourly pricing need an amount"""
        result = validate_service_request(self._service(pricing={'type': 'hourly'}))
        assert _fields(result) == ['pricing.amount']

    def test_quote_pricing_without_amount(self):
        """Test quote pricing needs no amount"""
        assert validate_service_request(self._service(pricing={'type': 'quote'}))[0] is True

    def test_features_required(self):
        """Test at least one named feature is required"""
        assert _fields(validate_service_request(self._service(features=[]))) == ['features']
        assert _fields(validate_service_request(self._service(features=[{}]))) == ['features[0].name']

    def test_partial_update_only_checks_given_fields(self):
        """Test partial validation ignores absent fields"""
        assert validate_service_request({'title': 'New title'}, partial=True)[0] is True
        assert _fields(validate_service_request({'category': 'Gardening'}, partial=True)) == ['category']

    def test_flags_must_be_booleans(self):
        """Test isActive and isFeatured reject strings"""
        result = validate_service_request(self._service(isActive='false', isFeatured=1))
        assert _fields(result) == ['isActive', 'isFeatured']
        assert validate_service_request({'isFeatured': True}, partial=True)[0] is True


@pytest.mark.unit
class TestMessageValidation:
    """Tests for chat, message, payment and review validation"""

    def test_chat_request(self):
        """Test chat type and opening message are required"""
        assert validate_chat_request({'type': 'support', 'message': 'Help'})[0] is True
        assert _fields(validate_chat_request({'type': 'sales', 'message': ''})) == ['type', 'message']

    def test_message_length_limit(self):
        """Test messages over 2000 characters are rejected"""
        assert validate_message_request({'content': 'x' * 2000})[0] is True
        assert _fields(validate_message_request({'content': 'x' * 2001})) == ['content']

    def test_message_is_internal_must_be_bool(self):
        """Test isInternal type check"""
        assert _fields(validate_message_request({'message': 'hi', 'isInternal': 'yes'})) == ['isInternal']

    def test_payment_request(self):
        """Test payment method is a closed set"""
        assert validate_payment_request({'orderId': VALID_ID, 'amount': 10, 'paymentMethod': 'stripe'})[0]
        assert _fields(validate_payment_request(
            {'orderId': VALID_ID, 'amount': 10, 'paymentMethod': 'cash'}
        )) == ['paymentMethod']

    def test_review_rating_bounds(self):
        """Test ratings must be integers 1..5"""
        assert validate_review_request({'rating': 5})[0] is True
        assert validate_review_request({'rating': 6})[0] is False
        assert validate_review_request({'rating': 0})[0] is False


@pytest.mark.unit
class TestEnsureValid:
    """Tests for raising validation errors"""

    def test_ensure_valid_passes_through(self):
        """Test nothing is raised for a valid result"""
        ensure_valid((True, []))

    def test_ensure_valid_raises_with_all_errors(self):
        """Test the error carries the first field and the full list"""
        with pytest.raises(ValidationError) as exc_info:
            ensure_valid(validate_chat_request({}))

        error = exc_info.value
        assert error.status_code == 400
        assert error.field == 'type'
        assert len(error.errors) == 2
        assert error.to_dict()['success'] is False
