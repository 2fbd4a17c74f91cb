from functools import wraps
from typing import Iterable
import logging
from flask import jsonify
from flask_jwt_extended import verify_jwt_in_request
from erp.services.policy import current_role, get_evaluator

logger = logging.getLogger(__name__)


def _forbidden(message: str, required: dict, role: str):
    body = {
        'success': False,
        'error': 'Insufficient permissions',
        'message': message,
        'required': required,
        'current': {'role': role},
    }
    return jsonify(body), 403


def require_permission(resource: str, action: str):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            role = current_role()
            if not get_evaluator().has_permission(role, resource, action):
                logger.warning('Permission denied: role=%s resource=%s action=%s', role, resource, action)
                return _forbidden(
                    f"You don't have permission to {action} {resource}",
                    {'resource': resource, 'action': action},
                    role,
                )
            return fn(*args, **kwargs)
        return wrapper
    return outer


def require_role(allowed_roles: Iterable[str]):
    allowed = list(allowed_roles)

    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            role = current_role()
            if role not in allowed:
                logger.warning('Role denied: role=%s allowed=%s', role, allowed)
                return _forbidden(
                    f"This action requires one of these roles: {', '.join(allowed)}",
                    {'roles': allowed},
                    role,
                )
            return fn(*args, **kwargs)
        return wrapper
    return outer
