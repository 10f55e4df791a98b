import uuid

from sqlalchemy import select

from app.models.audit_log import AuditLog


def test_create_and_get_site(client, db, owner, headers_for):
    headers = headers_for(owner)

    res = client.post("/ops/sites", json={"name": "Planta Norte", "address": "Av. Uno 123"}, headers=headers)
    assert res.status_code == 201
    site_id = res.json()["siteId"]

    fetched = client.get(f"/ops/sites/{site_id}", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["name"] == "Planta Norte"
    assert fetched.json()["isActive"] is True

    audit = db.execute(select(AuditLog).where(AuditLog.action == "ops.site.created")).scalar_one()
    assert str(audit.entity_id) == site_id


def test_list_puts_active_sites_first(client, owner, make_site, headers_for):
    make_site("Zeta")
    make_site("Alfa", is_active=False)
    make_site("Beta")

    res = client.get("/ops/sites", headers=headers_for(owner))

    assert [s["name"] for s in res.json()] == ["Beta", "Zeta", "Alfa"]


def test_list_is_tenant_scoped(client, owner, make_tenant, make_site, headers_for):
    other = make_tenant("Other Co")
    make_site("Mine")
    make_site("Theirs", tenant_id=other.tenant_id)

    res = client.get("/ops/sites", headers=headers_for(owner))

    assert [s["name"] for s in res.json()] == ["Mine"]


def test_update_site(client, owner, site, headers_for):
    res = client.patch(f"/ops/sites/{site.site_id}", json={"isActive": False}, headers=headers_for(owner))

    assert res.status_code == 200
    assert res.json()["isActive"] is False
    assert res.json()["name"] == site.name


def test_unknown_site_is_404(client, owner, headers_for):
    res = client.get(f"/ops/sites/{uuid.uuid4()}", headers=headers_for(owner))
    assert res.status_code == 404


def test_viewer_cannot_create_site(client, make_user, headers_for):
    res = client.post("/ops/sites", json={"name": "Nope"}, headers=headers_for(make_user("viewer")))
    assert res.status_code == 403


def test_empty_name_is_rejected(client, owner, headers_for):
    res = client.post("/ops/sites", json={"name": ""}, headers=headers_for(owner))
    assert res.status_code == 400
