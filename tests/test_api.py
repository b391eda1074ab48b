from __future__ import annotations

from datetime import timedelta
import uuid

from shiftcal.templates import app_today


def _login(client, email="owner@example.com"):
    return client.post("/login", json={"email": email, "password": "password123"})


def _error(response):
    body = response.get_json()
    assert body["success"] is False
    return body["error"]


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_api_requires_login(client):
    response = client.get("/api/v1/shift-types")

    assert response.status_code == 401
    assert _error(response)["code"] == "UNAUTHORIZED"


def test_login_rejects_bad_password(client):
    response = client.post("/login", json={"email": "owner@example.com", "password": "wrong-password"})

    assert response.status_code == 401
    assert _error(response)["code"] == "INVALID_CREDENTIALS"


def test_login_accepts_form_posts(client):
    response = client.post("/login", data={"email": "owner@example.com", "password": "password123"})

    assert response.status_code == 200
    assert response.get_json()["data"]["email"] == "owner@example.com"


def test_current_template_and_rename(client):
    _login(client)

    current = client.get("/api/v1/shift-templates/current")
    assert current.status_code == 200
    assert current.get_json()["data"]["current_version"]["version_no"] == 1

    renamed = client.put("/api/v1/shift-templates/current", json={"name": "Night crew"})
    assert renamed.status_code == 200
    assert renamed.get_json()["data"]["template_name"] == "Night crew"


def test_create_version_and_reject_duplicate_date(client):
    _login(client)
    effective_from = (app_today() + timedelta(days=7)).isoformat()

    created = client.post("/api/v1/shift-templates/current/versions", json={"effective_from": effective_from})
    duplicate = client.post("/api/v1/shift-templates/current/versions", json={"effective_from": effective_from})

    assert created.status_code == 201
    assert created.get_json()["data"]["version_no"] == 2
    assert duplicate.status_code == 400
    assert _error(duplicate)["code"] == "DUPLICATE_EFFECTIVE_DATE"


def test_shift_type_lifecycle(client):
    _login(client)

    created = client.post(
        "/api/v1/shift-types",
        json={"code": "L", "name": "Long", "color": 4281545523, "start_time": "08:00", "end_time": "20:00:00"},
    )
    assert created.status_code == 201
    shift_type = created.get_json()["data"]
    assert shift_type["duration_minutes"] == 720
    assert shift_type["sort_order"] == 5

    updated = client.put(
        f"/api/v1/shift-types/{shift_type['shift_type_id']}",
        json={"name": "Long day", "start_time": None, "end_time": None},
    )
    assert updated.status_code == 200
    assert updated.get_json()["data"]["name"] == "Long day"
    assert updated.get_json()["data"]["start_time"] is None

    listed = client.get("/api/v1/shift-types").get_json()["data"]
    assert [row["code"] for row in listed["shift_types"]] == ["D", "E", "N", "OFF", "L"]

    deleted = client.delete(f"/api/v1/shift-types/{shift_type['shift_type_id']}")
    assert deleted.status_code == 200
    missing = client.delete(f"/api/v1/shift-types/{shift_type['shift_type_id']}")
    assert missing.status_code == 404
    assert _error(missing)["code"] == "SHIFT_TYPE_NOT_FOUND"


def test_shift_type_validation_errors(client):
    _login(client)

    bad_time = client.post("/api/v1/shift-types", json={"code": "B", "name": "Bad", "start_time": "25:00", "end_time": "08:00"})
    assert bad_time.status_code == 400
    assert "start_time" in _error(bad_time)["details"]["fields"]

    missing_code = client.post("/api/v1/shift-types", json={"name": "Nameless"})
    assert missing_code.status_code == 400
    assert _error(missing_code)["code"] == "VALIDATION_ERROR"

    one_sided = client.post("/api/v1/shift-types", json={"code": "H", "name": "Half", "start_time": "08:00"})
    assert one_sided.status_code == 400
    assert _error(one_sided)["code"] == "VALIDATION_ERROR"


def test_non_scalar_values_are_rejected_not_dropped(client):
    _login(client)
    day_id = next(
        row["shift_type_id"]
        for row in client.get("/api/v1/shift-types").get_json()["data"]["shift_types"]
        if row["code"] == "D"
    )

    bad_color = client.put(f"/api/v1/shift-types/{day_id}", json={"color": True})
    assert bad_color.status_code == 400
    assert _error(bad_color)["code"] == "VALIDATION_ERROR"
    assert "color" in _error(bad_color)["details"]["fields"]

    bad_times = client.put(f"/api/v1/shift-types/{day_id}", json={"start_time": [], "end_time": {}})
    assert bad_times.status_code == 400
    assert set(_error(bad_times)["details"]["fields"]) == {"start_time", "end_time"}

    unchanged = next(
        row
        for row in client.get("/api/v1/shift-types").get_json()["data"]["shift_types"]
        if row["code"] == "D"
    )
    assert unchanged["color"] == 0xFFF5A623
    assert unchanged["start_time"] == "06:30"
    assert unchanged["end_time"] == "15:00"

    bad_entry = client.post(
        "/api/v1/work-shifts/batch",
        json={"work_shifts": [{"work_date": app_today().isoformat(), "shift_type_code": ["D"]}]},
    )
    assert bad_entry.status_code == 400
    assert "work_shifts[0].shift_type_code" in _error(bad_entry)["details"]["fields"]

    bad_login = client.post("/login", json={"email": "owner@example.com", "password": True})
    assert bad_login.status_code == 400
    assert _error(bad_login)["code"] == "VALIDATION_ERROR"


def test_foreign_shift_type_is_forbidden(app, client, other_client):
    _login(client)
    day_id = next(
        row["shift_type_id"]
        for row in client.get("/api/v1/shift-types").get_json()["data"]["shift_types"]
        if row["code"] == "D"
    )

    _login(other_client, "other@example.com")
    response = other_client.put(f"/api/v1/shift-types/{day_id}", json={"name": "Stolen"})

    assert response.status_code == 403
    assert _error(response)["code"] == "FORBIDDEN"


def test_shift_type_in_use_conflict(client):
    _login(client)
    day = app_today().isoformat()
    client.post("/api/v1/work-shifts", json={"work_date": day, "shift_type_code": "N"})
    night_id = next(
        row["shift_type_id"]
        for row in client.get("/api/v1/shift-types").get_json()["data"]["shift_types"]
        if row["code"] == "N"
    )

    response = client.delete(f"/api/v1/shift-types/{night_id}")

    assert response.status_code == 409
    assert _error(response)["code"] == "IN_USE"


def test_work_shift_endpoints(client):
    _login(client)
    start = app_today()

    single = client.post(
        "/api/v1/work-shifts",
        json={"work_date": start.isoformat(), "shift_type_code": "D", "note": "cover"},
    )
    assert single.status_code == 200
    work_shift_id = single.get_json()["data"]["work_shift_id"]

    batch = client.post(
        "/api/v1/work-shifts/batch",
        json={
            "work_shifts": [
                {"work_date": (start + timedelta(days=1)).isoformat(), "shift_type_code": "E"},
                {"work_date": (start + timedelta(days=2)).isoformat(), "shift_type_code": "N"},
            ]
        },
    )
    assert batch.status_code == 200
    assert batch.get_json()["data"]["count"] == 2

    listed = client.get(
        "/api/v1/work-shifts",
        query_string={"start_date": start.isoformat(), "end_date": (start + timedelta(days=2)).isoformat()},
    )
    assert [row["shift_type_code"] for row in listed.get_json()["data"]["work_shifts"]] == ["D", "E", "N"]

    updated = client.put(f"/api/v1/work-shifts/{work_shift_id}", json={"note": None})
    assert updated.status_code == 200
    assert updated.get_json()["data"]["note"] is None

    deleted = client.delete(f"/api/v1/work-shifts/{work_shift_id}")
    assert deleted.status_code == 200
    day = client.get("/api/v1/calendar/day", query_string={"date": start.isoformat()})
    assert day.get_json()["data"]["work_shifts"] == []


def test_batch_error_mapping(client):
    _login(client)
    day = app_today()

    duplicate = client.post(
        "/api/v1/work-shifts/batch",
        json={
            "work_shifts": [
                {"work_date": day.isoformat(), "shift_type_code": "D"},
                {"work_date": day.isoformat(), "shift_type_code": "E"},
            ]
        },
    )
    assert duplicate.status_code == 400
    assert _error(duplicate)["code"] == "DUPLICATE_DATE"

    invalid = client.post(
        "/api/v1/work-shifts/batch",
        json={"work_shifts": [{"work_date": day.isoformat(), "shift_type_code": "ZZ"}]},
    )
    assert invalid.status_code == 400
    assert _error(invalid)["details"] == {"code": "ZZ", "date": day.isoformat()}

    malformed = client.post(
        "/api/v1/work-shifts/batch",
        json={"work_shifts": [{"work_date": "not-a-date", "shift_type_code": "D"}]},
    )
    assert malformed.status_code == 400
    assert "work_shifts[0].work_date" in _error(malformed)["details"]["fields"]

    empty = client.post("/api/v1/work-shifts/batch", json={"work_shifts": []})
    assert empty.status_code == 400
    assert _error(empty)["code"] == "VALIDATION_ERROR"


def test_batch_too_large(app, client):
    app.config["WORK_SHIFT_BATCH_MAX_SIZE"] = 2
    _login(client)
    day = app_today()

    response = client.post(
        "/api/v1/work-shifts/batch",
        json={
            "work_shifts": [
                {"work_date": (day + timedelta(days=offset)).isoformat(), "shift_type_code": "D"}
                for offset in range(3)
            ]
        },
    )

    assert response.status_code == 400
    assert _error(response)["code"] == "BATCH_TOO_LARGE"


def test_unknown_work_shift_is_not_found(client):
    _login(client)

    response = client.put(f"/api/v1/work-shifts/{uuid.uuid4()}", json={"note": "x"})

    assert response.status_code == 404
    assert _error(response)["code"] == "WORK_SHIFT_NOT_FOUND"


def test_unknown_route_renders_json(client):
    _login(client)

    response = client.get("/api/v1/shift-types/not-a-uuid")

    assert response.status_code in (404, 405)
    assert response.get_json()["success"] is False
