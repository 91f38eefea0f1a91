"""
Helper utility functions shared by the API blueprints.
"""

from flask import request

from errors import ValidationError


def get_json_body():
    """
    Return the request's JSON object body.

    A missing body is treated as an empty object; any other non-object
    payload is rejected.
    """
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def get_int_arg(name, default, min_value=None, max_value=None):
    """
    Parse an integer query-string argument.

    Args:
        name: Query parameter name
        default: Value when the parameter is absent
        min_value: Inclusive lower bound
        max_value: Inclusive upper bound

    Returns:
        The parsed integer
    """
    raw = request.args.get(name)
    if raw is None or raw == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer", field=name)
    if min_value is not None and value < min_value:
        raise ValidationError(f"{name} must be at least {min_value}", field=name)
    if max_value is not None and value > max_value:
        raise ValidationError(f"{name} must be at most {max_value}", field=name)
    return value


def get_float_arg(name):
    raw = request.args.get(name)
    if raw is None or raw == '':
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a number", field=name)


def get_pagination(default_limit=10, max_limit=50):
    """Return (page, limit) from the query string."""
    page = get_int_arg('page', 1, min_value=1)
    limit = get_int_arg('limit', default_limit, min_value=1, max_value=max_limit)
    return page, limit
