"""
Utilities Package

Shared helper functions used across the API blueprints.
"""

from app.utils.helpers import (
    get_json_body,
    get_int_arg,
    get_float_arg,
    get_pagination,
)

__all__ = [
    'get_json_body',
    'get_int_arg',
    'get_float_arg',
    'get_pagination',
]
