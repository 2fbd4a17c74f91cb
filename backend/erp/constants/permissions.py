"""Central role/resource/action definitions for access control.

The permission table is immutable: resource permission sets are frozensets held in
read-only mappings. Build a custom table with `build_permission_table` (e.g. in tests)
and pass it to `PermissionEvaluator` instead of mutating the default one.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, FrozenSet

ROLE_ADMIN = 'admin'
ROLE_SALES = 'sales'
ROLE_PRODUCTION_MANAGER = 'production_manager'
ALL_ROLES = (ROLE_ADMIN, ROLE_SALES, ROLE_PRODUCTION_MANAGER)

# Role resolved for callers whose identity carries no role; matches no table entry
UNKNOWN_ROLE = 'user'

RESOURCES = ['users', 'customers', 'products', 'orders', 'production', 'invoices', 'reports', 'settings']
ACTIONS = ['create', 'read', 'update', 'delete']

CRUD = ('create', 'read', 'update', 'delete')


@dataclass(frozen=True)
class RoleDefinition:
    name: str
    description: str
    permissions: Mapping[str, FrozenSet[str]] = field(default_factory=lambda: MappingProxyType({}))

    def actions_for(self, resource: str) -> FrozenSet[str]:
        return self.permissions.get(resource, frozenset())

    def as_dict(self) -> Dict[str, object]:
        return {
            'name': self.name,
            'description': self.description,
            'permissions': {res: [a for a in ACTIONS if a in acts] for res, acts in self.permissions.items()},
        }


def build_role(name: str, description: str, permissions: Mapping[str, Iterable[str]]) -> RoleDefinition:
    frozen = {res: frozenset(acts) for res, acts in permissions.items()}
    return RoleDefinition(name=name, description=description, permissions=MappingProxyType(frozen))


def build_permission_table(roles: Mapping[str, RoleDefinition]) -> Mapping[str, RoleDefinition]:
    return MappingProxyType(dict(roles))


DEFAULT_PERMISSION_TABLE = build_permission_table({
    ROLE_ADMIN: build_role('System Administrator', 'Full access to all system features', {
        res: CRUD for res in RESOURCES
    }),
    ROLE_SALES: build_role('Sales Representative', 'Manage customers, orders, and invoices', {
        'users': ['read'],
        'customers': ['create', 'read', 'update'],
        'products': ['read'],
        'orders': CRUD,
        'production': ['read'],
        'invoices': CRUD,
        'reports': ['read'],
        'settings': [],
    }),
    ROLE_PRODUCTION_MANAGER: build_role('Production Manager', 'Manage production logs and assigned orders', {
        'users': ['read'],
        'customers': ['read'],
        'products': ['read'],
        'orders': ['read', 'update'],
        'production': CRUD,
        'invoices': ['read'],
        'reports': ['read'],
        'settings': [],
    }),
})
