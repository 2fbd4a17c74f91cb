import pytest
from erp.constants.permissions import (
    ACTIONS,
    DEFAULT_PERMISSION_TABLE,
    RESOURCES,
    build_permission_table,
    build_role,
)
from erp.services.policy import PermissionEvaluator


@pytest.fixture()
def evaluator():
    return PermissionEvaluator(DEFAULT_PERMISSION_TABLE)


@pytest.mark.parametrize('role', [None, '', 'user', 'Admin', 'superuser', 42])
def test_unknown_roles_are_denied_everything(evaluator, role):
    for resource in RESOURCES:
        for action in ACTIONS:
            assert evaluator.has_permission(role, resource, action) is False


@pytest.mark.parametrize('role, resource, action, expected', [
    ('admin', 'customers', 'delete', True),
    ('sales', 'customers', 'delete', False),
    ('sales', 'customers', 'update', True),
    ('production_manager', 'production', 'create', True),
    ('sales', 'production', 'create', False),
    ('sales', 'production', 'read', True),
    ('admin', 'settings', 'read', True),
    ('sales', 'settings', 'read', False),
    ('production_manager', 'settings', 'read', False),
    ('production_manager', 'customers', 'create', False),
    ('production_manager', 'production', 'update', True),
    ('production_manager', 'orders', 'update', True),
    ('production_manager', 'orders', 'delete', False),
    ('sales', 'invoices', 'delete', True),
    ('production_manager', 'invoices', 'create', False),
])
def test_table_entries(evaluator, role, resource, action, expected):
    assert evaluator.has_permission(role, resource, action) is expected


def test_admin_holds_every_permission(evaluator):
    assert all(evaluator.has_permission('admin', r, a) for r in RESOURCES for a in ACTIONS)


def test_unrecognized_resource_or_action_denies(evaluator):
    assert evaluator.has_permission('admin', 'warehouses', 'read') is False
    assert evaluator.has_permission('admin', 'customers', 'approve') is False


def test_custom_table_is_injected():
    table = build_permission_table({
        'auditor': build_role('Auditor', 'Read-only reports', {'reports': ['read']}),
    })
    ev = PermissionEvaluator(table)
    assert ev.has_permission('auditor', 'reports', 'read') is True
    assert ev.has_permission('auditor', 'reports', 'update') is False
    # default roles are absent from the custom table
    assert ev.has_permission('admin', 'reports', 'read') is False


def test_default_table_cannot_be_mutated():
    with pytest.raises(TypeError):
        DEFAULT_PERMISSION_TABLE['intruder'] = DEFAULT_PERMISSION_TABLE['admin']
    with pytest.raises(TypeError):
        DEFAULT_PERMISSION_TABLE['sales'].permissions['settings'] = frozenset(['read'])
    with pytest.raises(AttributeError):
        DEFAULT_PERMISSION_TABLE['sales'].permissions['orders'].add('approve')


def test_role_listing(evaluator):
    roles = {r['id']: r for r in evaluator.all_roles()}
    assert set(roles) == {'admin', 'sales', 'production_manager'}
    assert roles['sales']['name'] == 'Sales Representative'
    assert roles['production_manager']['permissions']['orders'] == ['read', 'update']
    assert roles['sales']['permissions']['settings'] == []
    assert evaluator.role_permissions('nobody') is None
    assert evaluator.role_permissions('admin').name == 'System Administrator'
