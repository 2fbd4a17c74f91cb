from erp import get_db
from erp.models.audit import AuditLog
from erp.models.product import MaterialRequirement


def _last_audit(action):
    return get_db().query(AuditLog).filter(AuditLog.action==action).order_by(AuditLog.id.desc()).first()


def test_create_list_update_material(client, login_as):
    headers = login_as('admin')
    resp = client.post('/raw-materials', json={
        'name': 'Aluminium Sheet', 'unit': 'kg', 'currentStock': 25, 'minStockLevel': 5, 'costPerUnit': '3.50',
    }, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    created = resp.get_json()['data']
    assert created['currentStock'] == 25
    assert created['costPerUnit'] == 3.5
    assert created['lowStock'] is False
    audit = _last_audit('RAW_MATERIAL.CREATE')
    assert audit.entity_id == str(created['id'])
    assert audit.meta == {'name': 'Aluminium Sheet', 'currentStock': 25}

    listing = client.get('/raw-materials?limit=500', headers=headers).get_json()
    assert listing['pagination']['limit'] == 200
    assert any(m['id'] == created['id'] for m in listing['data'])

    upd = client.put(f"/raw-materials/{created['id']}", json={
        'name': 'Aluminium Sheet', 'unit': 'kg', 'currentStock': 4, 'minStockLevel': 5, 'costPerUnit': '3.50',
    }, headers=headers)
    assert upd.status_code == 200
    assert upd.get_json()['data']['lowStock'] is True
    changes = _last_audit('RAW_MATERIAL.UPDATE').meta['changes']
    assert changes == {'currentStock': {'before': 25, 'after': 4}}


def test_material_validation(client, login_as):
    headers = login_as('admin')
    assert client.post('/raw-materials', json={'unit': 'kg', 'currentStock': 1}, headers=headers).status_code == 400
    neg = client.post('/raw-materials', json={'name': 'X', 'unit': 'kg', 'currentStock': -1}, headers=headers)
    assert neg.status_code == 400
    assert 'currentStock' in neg.get_json()['error']['detail']
    assert client.put('/raw-materials/999999', json={'name': 'X', 'unit': 'kg', 'currentStock': 1}, headers=headers).status_code == 404


def test_material_management_is_admin_only(client, login_as):
    for role in ('sales', 'production_manager'):
        headers = login_as(role)
        assert client.get('/raw-materials', headers=headers).status_code == 200
        resp = client.post('/raw-materials', json={'name': 'X', 'unit': 'kg', 'currentStock': 1}, headers=headers)
        assert resp.status_code == 403
        assert resp.get_json()['required'] == {'resource': 'products', 'action': 'create'}


def test_replace_requirements(client, login_as, make_material, make_product):
    headers = login_as('admin')
    steel = make_material('Steel-Req', 10)
    glue = make_material('Glue-Req', 3, unit='l')
    p = make_product([(steel, 1)])

    resp = client.put(f'/raw-materials/requirements/{p.id}', json={'requirements': [
        {'rawMaterialId': steel.id, 'quantityRequired': 2},
        {'rawMaterialId': glue.id, 'quantityRequired': '0.25', 'unit': 'l'},
    ]}, headers=headers)
    assert resp.status_code == 200, resp.get_json()
    rows = resp.get_json()['data']
    assert [(r['rawMaterialId'], r['quantityRequired'], r['unit']) for r in rows] == [
        (steel.id, 2, 'kg'), (glue.id, 0.25, 'l'),
    ]
    assert get_db().query(MaterialRequirement).filter(MaterialRequirement.product_id==p.id).count() == 2
    assert _last_audit('PRODUCT.REQUIREMENTS.SET').meta == {'count': 2}

    check = client.get(f'/raw-materials/check-availability?productId={p.id}&quantity=13', headers=headers).get_json()['data']
    assert check['canProduce'] is False
    assert [m['materialName'] for m in check['shortfallMaterials']] == ['Steel-Req', 'Glue-Req']


def test_replace_requirements_rejects_bad_rows(client, login_as, make_material, make_product):
    headers = login_as('admin')
    steel = make_material('Steel-Bad', 10)
    p = make_product([(steel, 1)])
    url = f'/raw-materials/requirements/{p.id}'
    assert client.put(url, json={'requirements': 'steel'}, headers=headers).status_code == 400
    assert client.put(url, json={'requirements': [{'rawMaterialId': steel.id, 'quantityRequired': 0}]}, headers=headers).status_code == 400
    mismatch = client.put(url, json={'requirements': [{'rawMaterialId': steel.id, 'quantityRequired': 1, 'unit': 'l'}]}, headers=headers)
    assert mismatch.status_code == 400
    dup = client.put(url, json={'requirements': [
        {'rawMaterialId': steel.id, 'quantityRequired': 1},
        {'rawMaterialId': steel.id, 'quantityRequired': 2},
    ]}, headers=headers)
    assert dup.status_code == 400
    assert client.put('/raw-materials/requirements/999999', json={'requirements': []}, headers=headers).status_code == 404
    # rejected payloads leave the previous rows in place
    assert get_db().query(MaterialRequirement).filter(MaterialRequirement.product_id==p.id).count() == 1


def test_delete_material(client, login_as, make_material):
    headers = login_as('admin')
    m = make_material('Scrap', 1)
    assert client.delete(f'/raw-materials/{m.id}', headers=headers).status_code == 200
    assert _last_audit('RAW_MATERIAL.DELETE').entity_id == str(m.id)
    assert client.delete(f'/raw-materials/{m.id}', headers=headers).status_code == 404


def test_quantities_finer_than_stored_scale_are_rejected(client, login_as, make_material, make_product):
    headers = login_as('admin')
    steel = make_material('Steel-Scale', 10)
    p = make_product([(steel, 1)])

    fine = client.put(f'/raw-materials/requirements/{p.id}', json={'requirements': [
        {'rawMaterialId': steel.id, 'quantityRequired': '0.0005'},
    ]}, headers=headers)
    assert fine.status_code == 400
    assert fine.get_json()['error']['detail'] == 'quantityRequired allows at most 3 decimal places'
    assert get_db().query(MaterialRequirement).filter(MaterialRequirement.product_id==p.id).one().quantity_required == 1

    # trailing zeros do not count as extra precision
    ok = client.put(f'/raw-materials/requirements/{p.id}', json={'requirements': [
        {'rawMaterialId': steel.id, 'quantityRequired': '0.2500'},
    ]}, headers=headers)
    assert ok.status_code == 200
    assert ok.get_json()['data'][0]['quantityRequired'] == 0.25

    stock = client.post('/raw-materials', json={'name': 'Fine', 'unit': 'kg', 'currentStock': '1.2345'}, headers=headers)
    assert stock.status_code == 400
    cost = client.post('/raw-materials', json={'name': 'Fine', 'unit': 'kg', 'currentStock': 1, 'costPerUnit': '0.125'}, headers=headers)
    assert cost.status_code == 400
    assert cost.get_json()['error']['detail'] == 'costPerUnit allows at most 2 decimal places'
