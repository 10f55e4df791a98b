import uuid
from datetime import date

from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.main import app
from app.models.schedule_slot import ScheduleSlot
from app.services import schedule_generator


def generate(client, headers, site_id, year=2024, month=2, overwrite=False):
    return client.post(
        "/ops/schedule/generate",
        json={"siteId": str(site_id), "year": year, "month": month, "overwrite": overwrite},
        headers=headers,
    )


def test_generate_returns_counts(client, owner, site, make_template, headers_for):
    make_template(site, ["Mon", "Wed", "Fri"], required_headcount=2)

    res = generate(client, headers_for(owner), site.site_id)

    assert res.status_code == 200
    assert res.json() == {"createdCount": 24, "generatedCount": 24, "overwrite": False, "message": None}


def test_generate_merge_twice_creates_nothing_new(client, owner, site, make_template, headers_for):
    make_template(site, ["Mon", "Wed", "Fri"], required_headcount=2)
    headers = headers_for(owner)

    generate(client, headers, site.site_id)
    res = generate(client, headers, site.site_id)

    assert res.status_code == 200
    assert res.json()["createdCount"] == 0
    assert res.json()["generatedCount"] == 24


def test_generate_overwrite(client, owner, site, make_template, headers_for):
    make_template(site, ["monday"])
    headers = headers_for(owner)

    generate(client, headers, site.site_id)
    res = generate(client, headers, site.site_id, overwrite=True)

    assert res.status_code == 200
    assert res.json()["createdCount"] == 4
    assert res.json()["overwrite"] is True


def test_generate_zero_rows_reports_message(client, owner, site, make_template, headers_for):
    make_template(site, ["monday"], active_until=date(2024, 1, 1))

    res = generate(client, headers_for(owner), site.site_id)

    assert res.status_code == 200
    body = res.json()
    assert body["createdCount"] == 0
    assert body["generatedCount"] == 0
    assert body["message"] == schedule_generator.NO_ROWS_MESSAGE


def test_generate_accepts_snake_case_body(client, owner, site, make_template, headers_for):
    make_template(site, ["sunday"])

    res = client.post(
        "/ops/schedule/generate",
        json={"site_id": str(site.site_id), "year": 2024, "month": 3},
        headers=headers_for(owner),
    )

    assert res.status_code == 200
    assert res.json()["createdCount"] == 5


def test_generate_without_token_is_401(client, site):
    res = client.post("/ops/schedule/generate", json={"siteId": str(site.site_id), "year": 2024, "month": 2})
    assert res.status_code == 401


def test_generate_with_bad_token_is_401(client, site):
    res = generate(client, {"Authorization": "Bearer not-a-jwt"}, site.site_id)
    assert res.status_code == 401


def test_generate_requires_edit_access(client, make_user, site, make_template, headers_for):
    make_template(site, ["monday"])
    viewer = make_user("viewer")

    res = generate(client, headers_for(viewer), site.site_id)

    assert res.status_code == 403
    assert "detail" in res.json()


def test_generate_allowed_through_override(client, make_user, site, make_template, headers_for):
    make_template(site, ["monday"])
    viewer = make_user("viewer", overrides={"submodules": {"ops.schedule": "edit"}})

    res = generate(client, headers_for(viewer), site.site_id)

    assert res.status_code == 200


def test_generate_unknown_site_is_404(client, owner, headers_for):
    res = generate(client, headers_for(owner), uuid.uuid4())

    assert res.status_code == 404
    assert res.json() == {"detail": "Site not found"}


def test_generate_without_templates_is_400(client, owner, site, headers_for):
    res = generate(client, headers_for(owner), site.site_id)

    assert res.status_code == 400
    assert res.json() == {"detail": "No active position templates for the selected site"}


def test_generate_invalid_month_is_400(client, owner, site, make_template, headers_for):
    make_template(site, ["monday"])

    res = generate(client, headers_for(owner), site.site_id, month=13)

    assert res.status_code == 400
    assert "month" in res.json()["detail"]


def test_generate_missing_site_id_is_400(client, owner, headers_for):
    res = client.post("/ops/schedule/generate", json={"year": 2024, "month": 2}, headers=headers_for(owner))
    assert res.status_code == 400


def test_generate_database_failure_is_500(client, owner, site, make_template, headers_for, monkeypatch):
    make_template(site, ["monday"])

    def broken_audit(*args, **kwargs):
        raise SQLAlchemyError("boom")

    monkeypatch.setattr(schedule_generator, "record_audit", broken_audit)
    res = generate(client, headers_for(owner), site.site_id)

    assert res.status_code == 500
    assert res.json() == {"detail": "Could not generate the monthly schedule"}


# ---------- read models ----------
def test_month_view_lists_slots_with_position_names(client, owner, site, make_template, headers_for):
    make_template(site, ["friday"], required_headcount=2, name="Acceso vehicular")
    headers = headers_for(owner)
    generate(client, headers, site.site_id)

    res = client.get(
        "/ops/schedule/month",
        params={"siteId": str(site.site_id), "year": 2024, "month": 2},
        headers=headers,
    )

    assert res.status_code == 200
    body = res.json()
    assert body["siteId"] == str(site.site_id)
    assert len(body["slots"]) == 8
    first = body["slots"][0]
    assert first["slotDate"] == "2024-02-02"
    assert first["slotNumber"] == 1
    assert first["positionName"] == "Acceso vehicular"
    assert first["status"] == "planned"


def test_month_view_allowed_for_viewer(client, make_user, site, headers_for):
    viewer = make_user("viewer")
    res = client.get(
        "/ops/schedule/month",
        params={"siteId": str(site.site_id), "year": 2024, "month": 2},
        headers=headers_for(viewer),
    )
    assert res.status_code == 200
    assert res.json()["slots"] == []


def test_ppc_counts_uncovered_slots(client, db, owner, site, make_template, headers_for):
    make_template(site, ["monday"], required_headcount=2)
    headers = headers_for(owner)
    generate(client, headers, site.site_id)

    covered = db.execute(
        select(ScheduleSlot).where(ScheduleSlot.slot_date == date(2024, 2, 5), ScheduleSlot.slot_number == 1)
    ).scalar_one()
    covered.assigned_worker_id = uuid.uuid4()
    db.commit()

    res = client.get(
        "/ops/schedule/ppc",
        params={"siteId": str(site.site_id), "year": 2024, "month": 2},
        headers=headers,
    )

    assert res.status_code == 200
    body = res.json()
    assert body["totalUncovered"] == 7
    assert body["byDate"][0] == {"slotDate": "2024-02-05", "uncovered": 1}
    assert [d["uncovered"] for d in body["byDate"]] == [1, 2, 2, 2]


def test_unexpected_failure_is_a_json_500(client, owner, site, make_template, headers_for, monkeypatch):
    make_template(site, ["monday"])

    def broken_expansion(*args, **kwargs):
        raise RuntimeError("calendar exploded")

    monkeypatch.setattr(schedule_generator, "expand_position_templates", broken_expansion)
    with TestClient(app, raise_server_exceptions=False) as quiet_client:
        res = generate(quiet_client, headers_for(owner), site.site_id)

    assert res.status_code == 500
    assert res.headers["content-type"].startswith("application/json")
    assert res.json() == {"detail": "Internal server error"}
