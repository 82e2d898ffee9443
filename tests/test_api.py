from __future__ import annotations

import json

from hcms.database.collections import Collections
from hcms.users.passwords import verify_password


def test_health_endpoints(client, store):
    assert client.get("/").get_json() == {"status": "ok", "service": "hcms-api"}
    assert client.get("/api/health").get_json()["database"] == "connected"


def test_health_reports_database_failure(client, store, monkeypatch):
    def broken_ping():
        raise RuntimeError("down")

    monkeypatch.setattr(store, "ping", broken_ping)
    resp = client.get("/api/health")
    assert resp.status_code == 503


def test_login_sets_session_and_hides_hash(client, seeded):
    resp = client.post("/api/auth/login", json={"username": "emp", "password": "emp-pass"})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["user"]["username"] == "emp"
    assert "password_hash" not in body["user"]
    assert body["permissions"]["can_assign_training"] is True
    assert body["permissions"]["can_manage_users"] is False

    me = client.get("/api/auth/me").get_json()
    assert me["user"]["full_name"] == "Emma Employee"

    client.post("/api/auth/logout")
    assert client.get("/api/auth/me").status_code == 401


def test_login_rejects_bad_credentials(client, seeded):
    resp = client.post("/api/auth/login", json={"username": "emp", "password": "wrong"})

    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Invalid credentials"}


def test_teacher_login_and_portal(client, store, seeded):
    teacher = store.seed(
        Collections.TEACHERS,
        {
            "first_name": "Tia",
            "last_name": "Tan",
            "phone": "555-0199",
            "school_id": seeded["school_a"]["id"],
            "status": "active",
            "is_active_login": True,
        },
    )

    assert client.get("/api/teacher-portal/overview").status_code == 401
    assert client.post("/api/auth/teacher-login", json={"phone": "000"}).status_code == 401

    resp = client.post("/api/auth/teacher-login", json={"phone": "555-0199"})
    assert resp.get_json()["teacher"]["id"] == teacher["id"]

    overview = client.get("/api/teacher-portal/overview").get_json()
    assert overview["teacher"]["first_name"] == "Tia"
    assert overview["school"]["name"] == "Alpha School"
    assert overview["assignments"] == []


def test_crud_requires_login(client, seeded):
    assert client.get("/api/schools").status_code == 401


def test_crud_lifecycle(admin_client):
    created = admin_client.post("/api/training_programs", json={"title": "Phonics", "status": "active"})
    assert created.status_code == 201
    doc_id = created.get_json()["id"]

    assert admin_client.get(f"/api/training_programs/{doc_id}").get_json()["title"] == "Phonics"

    updated = admin_client.put(f"/api/training_programs/{doc_id}", json={"title": "Phonics 2", "id": "other"})
    assert updated.get_json() == {"success": True, "id": doc_id}
    assert admin_client.get(f"/api/training_programs/{doc_id}").get_json()["title"] == "Phonics 2"

    listed = admin_client.get("/api/training_programs", query_string={"filter": json.dumps({"status": "active"})})
    assert [d["id"] for d in listed.get_json()] == [doc_id]
    count = admin_client.get("/api/training_programs/count", query_string={"filter": json.dumps({"status": "archived"})})
    assert count.get_json() == {"count": 0}

    assert admin_client.delete(f"/api/training_programs/{doc_id}").status_code == 200
    assert admin_client.get(f"/api/training_programs/{doc_id}").status_code == 404
    assert admin_client.put(f"/api/training_programs/{doc_id}", json={"title": "x"}).status_code == 404


def test_crud_bulk_and_upsert(admin_client, store):
    resp = admin_client.post("/api/mentors/bulk", json=[{"first_name": "A"}, {"first_name": "B"}])
    assert resp.status_code == 201
    assert len(resp.get_json()) == 2

    for title in ("first", "second"):
        admin_client.post(
            "/api/training_programs/upsert",
            json={"filter": {"code": "P1"}, "document": {"title": title}},
        )
    programs = store.find(Collections.TRAINING_PROGRAMS, {"code": "P1"})
    assert [p["title"] for p in programs] == ["second"]

    assert admin_client.post("/api/mentors/bulk", json={"first_name": "A"}).status_code == 400


def test_crud_hashes_passwords_and_never_returns_them(admin_client, store):
    resp = admin_client.post("/api/users", json={"username": "new", "password": "secret123", "password_hash": "x"})

    assert resp.status_code == 201
    assert "password_hash" not in resp.get_json()
    assert "password" not in resp.get_json()
    stored = store.find_one(Collections.USERS, {"username": "new"})
    assert verify_password("secret123", stored["password_hash"])
    assert stored["password_hash"] != "x"


def test_crud_rejects_unknown_collections_and_bad_filters(admin_client):
    assert admin_client.get("/api/buses").status_code == 404
    assert admin_client.get("/api/schools", query_string={"filter": "{not json"}).status_code == 400
    assert admin_client.get("/api/schools/count", query_string={"filter": "[1]"}).status_code == 400
    where = json.dumps({"$where": "sleep(1000)"})
    assert admin_client.get("/api/schools", query_string={"filter": where}).status_code == 400
    secret = json.dumps({"password_hash": {"$exists": True}})
    assert admin_client.get("/api/users", query_string={"filter": secret}).status_code == 400


def test_crud_write_permissions(viewer_client, employee_client, seeded):
    school_id = seeded["school_b"]["id"]

    assert viewer_client.get("/api/schools").status_code == 200
    assert viewer_client.post("/api/schools", json={"name": "X"}).status_code == 403
    assert employee_client.delete(f"/api/schools/{school_id}").status_code == 403
    assert employee_client.post("/api/users", json={"username": "x"}).status_code == 403
    assert employee_client.post("/api/schools", json={"name": "Gamma"}).status_code == 201


def _teacher_client(client, teacher: dict):
    with client.session_transaction() as sess:
        sess["teacher_id"] = teacher["id"]
        sess["role"] = "teacher"
    return client


def test_training_join_requires_teacher_session(client, store, seeded):
    teacher = store.seed(Collections.TEACHERS, {"first_name": "Tia", "school_id": seeded["school_a"]["id"], "status": "active"})
    assignment = store.seed(Collections.TRAINING_ASSIGNMENTS, {"teacher_id": teacher["id"], "training_program_id": "p1"})

    resp = client.post("/api/training/join", json={"teacherId": teacher["id"], "assignmentId": assignment["id"]})

    assert resp.status_code == 401
    assert store.count(Collections.TRAINING_ATTENDANCE) == 0


def test_training_join_endpoint(client, store, seeded):
    teacher = store.seed(Collections.TEACHERS, {"first_name": "Tia", "school_id": seeded["school_a"]["id"], "status": "active"})
    other = store.seed(Collections.TEACHERS, {"first_name": "Ola", "school_id": seeded["school_a"]["id"], "status": "active"})
    assignment = store.seed(Collections.TRAINING_ASSIGNMENTS, {"teacher_id": teacher["id"], "training_program_id": "p1"})
    _teacher_client(client, teacher)
    body = {"teacherId": teacher["id"], "assignmentId": assignment["id"]}

    first = client.post("/api/training/join", json=body)
    second = client.post("/api/training/join", json={"assignmentId": assignment["id"]})

    assert first.status_code == 201
    assert first.get_json()["message"] == "Joined training"
    assert second.status_code == 200
    assert second.get_json()["message"] == "Already joined"
    assert client.post("/api/training/join", json={"teacherId": other["id"], "assignmentId": "x"}).status_code == 403
    assert client.post("/api/training/join", json={"assignmentId": "x"}).status_code == 404


def test_dashboard_and_reports(employee_client, viewer_client, seeded):
    stats = employee_client.get("/api/dashboard/stats")
    assert stats.status_code == 200
    assert stats.get_json()["schools"] == 1

    report = employee_client.get("/api/reports/daily-attendance", query_string={"date": "2025-03-05"})
    assert report.get_json() == {"attendance_date": "2025-03-05", "programs": [], "details": []}

    csv_resp = employee_client.get("/api/reports/daily-attendance.csv", query_string={"date": "2025-03-05"})
    assert csv_resp.mimetype == "text/csv"
    assert csv_resp.data.decode("utf-8-sig").startswith("Daily Attendance Report - 2025-03-05")

    assert viewer_client.get("/api/reports/daily-attendance").status_code == 403


def test_school_endpoints_are_scoped(employee_client, seeded):
    schools = employee_client.get("/api/me/schools").get_json()
    assert [s["name"] for s in schools] == ["Alpha School"]

    resp = employee_client.get("/api/me/teachers", query_string={"school_id": seeded["school_b"]["id"]})
    assert resp.status_code == 403


def test_upload_endpoint(admin_client, employee_client, store):
    data = "name,code,address,phone,email,enrollment_count,principal_name\nDelta,SCH004,,,,,\n"

    resp = admin_client.post("/api/uploads/schools", data=data.encode(), content_type="text/csv")
    assert resp.get_json() == {"success": 1, "failed": 0, "errors": []}
    assert store.find_one(Collections.SCHOOLS, {"code": "SCH004"})["name"] == "Delta"

    assert employee_client.post("/api/uploads/schools", data=data.encode(), content_type="text/csv").status_code == 403
    template = admin_client.get("/api/uploads/mentors/template")
    assert template.data.decode("utf-8-sig").startswith("first_name,last_name")


def test_admin_user_management(admin_client, employee_client, seeded, store):
    created = admin_client.post("/api/admin/users", json={"full_name": "Nia New", "role": "employee"})
    assert created.status_code == 201
    body = created.get_json()
    assert body["username"].startswith("nianew")
    assert body["password"]

    users = admin_client.get("/api/admin/users").get_json()
    assert "Nia New" in [u["full_name"] for u in users]
    assert employee_client.get("/api/admin/users").status_code == 403
