"""
Input Validation & Sanitization Utilities
Provides field-level validation for marketplace API requests
"""
import re
from typing import Dict, Any, List, Optional, Tuple, Iterable
import logging

from errors import ValidationError

logger = logging.getLogger(__name__)

# Closed sets shared by models, repositories and validators
SERVICE_CATEGORIES = (
    'Web Development',
    'Mobile Development',
    'Cloud Services',
    'Cybersecurity',
    'Data Analytics',
    'IT Consulting',
    'DevOps',
    'AI/ML',
    'Database Management',
    'Network Infrastructure',
    'Technical Support',
    'Custom Software',
)
PRICING_TYPES = ('fixed', 'hourly', 'quote')
BILLING_CYCLES = ('one-time', 'monthly', 'yearly')
DIFFICULTY_LEVELS = ('Basic', 'Intermediate', 'Advanced', 'Expert')
CONTACT_PREFERENCES = ('email', 'phone', 'chat')
PRIORITIES = ('low', 'medium', 'high', 'urgent')
PAYMENT_METHODS = ('stripe', 'paypal')
CHAT_TYPES = ('support', 'order', 'quote', 'general')
MESSAGE_TYPES = ('text', 'image', 'file', 'system')
MILESTONE_STATUSES = ('pending', 'in_progress', 'completed')
USER_ROLES = ('client', 'admin', 'support')

# Regex patterns
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
ID_PATTERN = re.compile(r'^[0-9a-fA-F-]{8,36}$')


def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate that all required fields are present in the data

    Args:
        data: Dictionary of input data
        required_fields: List of required field names

    Returns:
        Tuple of (is_valid, error_message)
    """
    missing_fields = [field for field in required_fields if field not in data or data[field] is None or data[field] == '']

    if missing_fields:
        return False, f"Missing required fields: {', '.join(missing_fields)}"

    return True, None


def validate_email(email: str) -> Tuple[bool, Optional[str]]:
    """
    Validate email format

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not email or not isinstance(email, str):
        return False, "Email must be a non-empty string"

    if not EMAIL_PATTERN.match(email):
        return False, "Invalid email format"

    if len(email) > 254:  # RFC 5321
        return False, "Email address too long"

    return True, None


def validate_id(value: Any) -> Tuple[bool, Optional[str]]:
    """Validate a document id (UUID string)"""
    if not value or not isinstance(value, str) or not ID_PATTERN.match(value):
        return False, "Must be a valid id"
    return True, None


def validate_string_length(value: str, min_length: int = 0, max_length: int = 1000) -> Tuple[bool, Optional[str]]:
    """
    Validate string length is within acceptable range

    Args:
        value: String to validate
        min_length: Minimum allowed length
        max_length: Maximum allowed length

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, "Value must be a string"

    value = value.strip()

    if len(value) < min_length:
        return False, f"Value too short (minimum {min_length} characters)"

    if len(value) > max_length:
        return False, f"Value too long (maximum {max_length} characters)"

    return True, None


def validate_number_range(value: float, min_value: Optional[float] = None, max_value: Optional[float] = None) -> Tuple[bool, Optional[str]]:
    """
    Validate number is within acceptable range

    Args:
        value: Number to validate
        min_value: Minimum allowed value
        max_value: Maximum allowed value

    Returns:
        Tuple of (is_valid, error_message)
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False, "Value must be a number"

    if min_value is not None and value < min_value:
        return False, f"Value too small (minimum {min_value})"

    if max_value is not None and value > max_value:
        return False, f"Value too large (maximum {max_value})"

    return True, None


def validate_integer(value: Any, min_value: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """Validate an integer (booleans rejected) with an optional lower bound"""
    if isinstance(value, bool) or not isinstance(value, int):
        return False, "Value must be an integer"
    return validate_number_range(value, min_value=min_value)


def validate_choice(value: Any, choices: Iterable[str]) -> Tuple[bool, Optional[str]]:
    """Validate enum membership"""
    choices = tuple(choices)
    if value not in choices:
        return False, f"Must be one of: {', '.join(choices)}"
    return True, None


def sanitize_string(value: str, max_length: int = 1000) -> str:
    """
    Sanitize string input by removing potentially dangerous characters

    Args:
        value: String to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized string
    """
    if not isinstance(value, str):
        return str(value)

    # Remove null bytes
    sanitized = value.replace('\x00', '')

    # Trim whitespace
    sanitized = sanitized.strip()

    # Limit length
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized


def format_validation_error(field: str, message: str) -> Dict[str, Any]:
    """
    Format a field-level validation error for consistent API responses

    Args:
        field: Field name that failed validation
        message: Error message

    Returns:
        Error dictionary
    """
    return {
        'field': field,
        'message': message
    }


class _FieldErrors:
    """Collects field-level errors for one request body"""

    def __init__(self):
        self.errors: List[Dict[str, Any]] = []

    def check(self, field: str, result: Tuple[bool, Optional[str]]):
        is_valid, error = result
        if not is_valid:
            self.errors.append(format_validation_error(field, error))

    def add(self, field: str, message: str):
        self.errors.append(format_validation_error(field, message))

    def result(self) -> Tuple[bool, List[Dict[str, Any]]]:
        return not self.errors, self.errors


def _present(data: Dict[str, Any], field: str) -> bool:
    return field in data and data[field] is not None


def validate_order_request(data: Dict[str, Any]) -> Tuple[bool, List[Dict[str, Any]]]:
    """
    Validate an order creation request

    Returns:
        Tuple of (is_valid, list of field errors)
    """
    errors = _FieldErrors()
    errors.check('serviceId', validate_id(data.get('serviceId')))
    errors.check('quantity', validate_integer(data.get('quantity', 1), min_value=1))
    errors.check('requirements', validate_string_length(data.get('requirements'), 10, 5000))
    errors.check('contactPreference', validate_choice(data.get('contactPreference'), CONTACT_PREFERENCES))

    if _present(data, 'timeline'):
        errors.check('timeline', validate_string_length(data['timeline'], max_length=500))
    if _present(data, 'additionalNotes'):
        errors.check('additionalNotes', validate_string_length(data['additionalNotes'], max_length=1000))
    if _present(data, 'customAmount'):
        errors.check('customAmount', validate_number_range(data['customAmount'], min_value=0))

    return errors.result()


def validate_quote_request(data: Dict[str, Any]) -> Tuple[bool, List[Dict[str, Any]]]:
    """
    Validate a quote request submitted by a client

    Returns:
        Tuple of (is_valid, list of field errors)
    """
    errors = _FieldErrors()
    errors.check('serviceId', validate_id(data.get('serviceId')))
    errors.check('customAmount', validate_number_range(data.get('customAmount'), min_value=1))
    errors.check('requirements', validate_string_length(data.get('requirements'), 10, 5000))
    errors.check('contactPreference', validate_choice(data.get('contactPreference'), CONTACT_PREFERENCES))

    if _present(data, 'timeline'):
        errors.check('timeline', validate_string_length(data['timeline'], max_length=500))
    if _present(data, 'additionalNotes'):
        errors.check('additionalNotes', validate_string_length(data['additionalNotes'], max_length=1000))
    if _present(data, 'priority'):
        errors.check('priority', validate_choice(data['priority'], PRIORITIES))
    if _present(data, 'attachments') and not isinstance(data['attachments'], list):
        errors.add('attachments', 'Attachments must be an array')

    return errors.result()


def validate_quote_response(data: Dict[str, Any]) -> Tuple[bool, List[Dict[str, Any]]]:
    """Validate an admin's priced response to a quote"""
    errors = _FieldErrors()
    errors.check('quotedAmount', validate_number_range(data.get('quotedAmount'), min_value=0))
    message = data.get('response', data.get('message'))
    errors.check('response', validate_string_length(message, 1, 2000))
    return errors.result()


def validate_service_request(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, List[Dict[str, Any]]]:
    """
    Validate a service create (or, with partial=True, update) request

    Returns:
        Tuple of (is_valid, list of field errors)
    """
    errors = _FieldErrors()

    def wanted(field):
        return not partial or field in data

    if wanted('title'):
        errors.check('title', validate_string_length(data.get('title'), 5, 200))
    if wanted('description'):
        errors.check('description', validate_string_length(data.get('description'), 20, 2000))
    if wanted('category'):
        errors.check('category', validate_choice(data.get('category'), SERVICE_CATEGORIES))
    if wanted('deliveryTime'):
        errors.check('deliveryTime', validate_string_length(data.get('deliveryTime'), 1, 100))

    if wanted('pricing'):
        pricing = data.get('pricing')
        if not isinstance(pricing, dict):
            errors.add('pricing', 'Pricing must be an object')
        else:
            pricing_type = pricing.get('type')
            errors.check('pricing.type', validate_choice(pricing_type, PRICING_TYPES))
            amount = pricing.get('amount')
            if pricing_type in ('fixed', 'hourly') and amount is None:
                errors.add('pricing.amount', f"Amount is required for {pricing_type} pricing")
            elif amount is not None:
                errors.check('pricing.amount', validate_number_range(amount, min_value=0))
            if pricing.get('billingCycle') is not None:
                errors.check('pricing.billingCycle', validate_choice(pricing['billingCycle'], BILLING_CYCLES))

    if wanted('features'):
        features = data.get('features')
        if not isinstance(features, list) or not features:
            errors.add('features', 'At least one feature is required')
        else:
            for idx, feature in enumerate(features):
                if not isinstance(feature, dict) or not feature.get('name'):
                    errors.add(f'features[{idx}].name', 'Feature name is required')

    if _present(data, 'technologies') and not isinstance(data['technologies'], list):
        errors.add('technologies', 'Technologies must be an array')
    if _present(data, 'tags') and not isinstance(data['tags'], list):
        errors.add('tags', 'Tags must be an array')
    if _present(data, 'difficulty'):
        errors.check('difficulty', validate_choice(data['difficulty'], DIFFICULTY_LEVELS))
    for flag in ('isActive', 'isFeatured'):
        if _present(data, flag) and not isinstance(data[flag], bool):
            errors.add(flag, f'{flag} must be a boolean')

    return errors.result()


def validate_chat_request(data: Dict[str, Any]) -> Tuple[bool, List[Dict[str, Any]]]:
    """Validate a new chat thread with its opening message"""
    errors = _FieldErrors()
    errors.check('type', validate_choice(data.get('type'), CHAT_TYPES))
    errors.check('message', validate_string_length(data.get('message'), 1, 2000))
    if _present(data, 'subject'):
        errors.check('subject', validate_string_length(data['subject'], max_length=200))
    if _present(data, 'priority'):
        errors.check('priority', validate_choice(data['priority'], PRIORITIES))
    return errors.result()


def validate_message_request(data: Dict[str, Any]) -> Tuple[bool, List[Dict[str, Any]]]:
    """Validate a chat message or a communication log entry"""
    errors = _FieldErrors()
    content = data.get('content', data.get('message'))
    errors.check('content', validate_string_length(content, 1, 2000))
    if _present(data, 'messageType'):
        errors.check('messageType', validate_choice(data['messageType'], MESSAGE_TYPES))
    if _present(data, 'isInternal') and not isinstance(data['isInternal'], bool):
        errors.add('isInternal', 'isInternal must be a boolean')
    if _present(data, 'attachments') and not isinstance(data['attachments'], list):
        errors.add('attachments', 'Attachments must be an array')
    return errors.result()


def validate_payment_request(data: Dict[str, Any]) -> Tuple[bool, List[Dict[str, Any]]]:
    """Validate a payment processing request"""
    errors = _FieldErrors()
    errors.check('orderId', validate_id(data.get('orderId')))
    errors.check('amount', validate_number_range(data.get('amount'), min_value=0.01))
    errors.check('paymentMethod', validate_choice(data.get('paymentMethod'), PAYMENT_METHODS))
    return errors.result()


def validate_review_request(data: Dict[str, Any]) -> Tuple[bool, List[Dict[str, Any]]]:
    """Validate an order review"""
    errors = _FieldErrors()
    errors.check('rating', validate_integer(data.get('rating'), min_value=1))
    if isinstance(data.get('rating'), int) and data['rating'] > 5:
        errors.add('rating', 'Value too large (maximum 5)')
    if _present(data, 'comment'):
        errors.check('comment', validate_string_length(data['comment'], max_length=1000))
    return errors.result()


def ensure_valid(result: Tuple[bool, List[Dict[str, Any]]], message: str = 'Validation failed'):
    """Raise ValidationError carrying every field error if the result is invalid"""
    is_valid, errors = result
    if not is_valid:
        logger.debug(f"Validation failed: {errors}")
        first_field = errors[0]['field'] if errors else None
        raise ValidationError(message, field=first_field, errors=errors)
