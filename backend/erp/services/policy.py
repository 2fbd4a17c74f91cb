from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional
from flask_jwt_extended import get_jwt
from erp.constants.permissions import RoleDefinition, UNKNOWN_ROLE


class PermissionEvaluator:
    """Answers "may this role perform this action on this resource?".

    Pure lookup over an injected, read-only role table. Unknown roles, resources
    and actions all degrade to a denial; nothing here raises or performs I/O.
    """

    def __init__(self, table: Mapping[str, RoleDefinition]):
        self._table = table

    def has_permission(self, role: Optional[str], resource: str, action: str) -> bool:
        if not role or not isinstance(role, str):
            return False
        definition = self._table.get(role)
        if definition is None:
            return False
        return action in definition.actions_for(resource)

    def is_known_role(self, role: Optional[str]) -> bool:
        return bool(role) and isinstance(role, str) and role in self._table

    def role_permissions(self, role: Optional[str]) -> Optional[RoleDefinition]:
        if not self.is_known_role(role):
            return None
        return self._table[role]

    def all_roles(self) -> List[Dict[str, Any]]:
        return [{'id': role, **definition.as_dict()} for role, definition in self._table.items()]


def current_role() -> str:
    """Role claim of the verified JWT, or the sentinel role when absent."""
    claims = get_jwt() or {}
    return claims.get('role') or UNKNOWN_ROLE


def get_evaluator() -> PermissionEvaluator:
    from flask import current_app
    return current_app.extensions['permission_evaluator']
