"""HTTP surface: auth, role gates, error mapping and an end-to-end flow."""

import pytest
from fastapi.testclient import TestClient

from portal.core.errors import StorageUnavailable
from portal.main import app
from portal.services import proposal_service

TEST_PASSWORD = "secret123"


@pytest.fixture
def client():
    return TestClient(app)


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "healthy"
    assert client.get("/health").json()["database"] == "connected"


def test_login_and_me(client, physics):
    response = client.post("/api/auth/login", json={"login_id": "100001", "password": TEST_PASSWORD})
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["name"] == "Prof A"
    assert me.json()["research_area"] == "Physics"


def test_bad_login(client, physics):
    response = client.post("/api/auth/login", json={"login_id": "100001", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["error"] == "InvalidCredentials"


def test_requests_without_token_are_refused(client):
    assert client.get("/api/proposals").status_code in (401, 403)
    bogus = client.get("/api/proposals", headers={"Authorization": "Bearer not-a-jwt"})
    assert bogus.status_code == 401


def test_students_cannot_submit(client, make_student, auth_headers):
    student = make_student()
    response = client.post(
        "/api/proposals",
        json={"title": "Sneaky", "abstract": "x", "timeline": "1 week", "seats": 1},
        headers=auth_headers(student),
    )
    assert response.status_code == 403


def test_insufficient_reviewers_maps_to_conflict(client, make_user, auth_headers):
    lonely = make_user("700001", "faculty", research_area="Astrobiology")
    response = client.post(
        "/api/proposals",
        json={"title": "Life on Europa", "abstract": "x", "timeline": "1 year", "seats": 1},
        headers=auth_headers(lonely),
    )
    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "InsufficientReviewers"
    assert body["retryable"] is False


def test_blank_rejection_comment_is_refused(client, physics, submit, auth_headers):
    proposal = submit(physics[0])
    reviewer = next(f for f in physics if f.user_id == proposal["reviewer_ids"][0])

    response = client.post(
        f"/api/proposals/{proposal['proposal_id']}/reject",
        json={"comment": "   "},
        headers=auth_headers(reviewer),
    )
    assert response.status_code == 422


def test_storage_failure_is_retryable(client, physics, auth_headers, monkeypatch):
    def unavailable(*args, **kwargs):
        raise StorageUnavailable()

    monkeypatch.setattr(proposal_service, "list_proposals", unavailable)
    response = client.get("/api/proposals", headers=auth_headers(physics[0]))

    assert response.status_code == 503
    assert response.json()["retryable"] is True
    assert response.json()["error"] == "StorageUnavailable"


def test_end_to_end_flow(client, physics, make_student, auth_headers):
    a = physics[0]
    by_id = {f.user_id: f for f in physics}

    created = client.post(
        "/api/proposals",
        json={"title": "Dark matter", "abstract": "Axion search.", "timeline": "9 months", "seats": 1},
        headers=auth_headers(a),
    )
    assert created.status_code == 201
    proposal = created.json()
    pid = proposal["proposal_id"]
    panel = [by_id[rid] for rid in proposal["reviewer_ids"]]

    student = make_student("Kim")
    # pending proposals are invisible to students
    assert client.get(f"/api/proposals/{pid}", headers=auth_headers(student)).status_code == 404

    queue = client.get("/api/proposals/review", headers=auth_headers(panel[0])).json()
    assert [p["proposal_id"] for p in queue] == [pid]

    for reviewer in panel:
        response = client.post(f"/api/proposals/{pid}/approve", headers=auth_headers(reviewer))
        assert response.status_code == 200
    assert response.json()["status"] == "approved"

    listed = client.get("/api/proposals", headers=auth_headers(student)).json()
    assert [p["proposal_id"] for p in listed] == [pid]

    applied = client.post("/api/applications", json={"proposal_id": pid}, headers=auth_headers(student))
    assert applied.status_code == 201
    application_id = applied.json()["application_id"]

    duplicate = client.post("/api/applications", json={"proposal_id": pid}, headers=auth_headers(student))
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "DuplicateApplication"

    late = make_student("Lee")
    full = client.post("/api/applications", json={"proposal_id": pid}, headers=auth_headers(late))
    assert full.status_code == 409
    assert full.json()["error"] == "NotApplicable"

    inbox = client.get("/api/applications/faculty", headers=auth_headers(a)).json()
    assert [row["student_name"] for row in inbox] == ["Kim"]

    not_owner = client.post(f"/api/applications/{application_id}/select", headers=auth_headers(physics[1]))
    assert not_owner.status_code == 403

    selected = client.post(f"/api/applications/{application_id}/select", headers=auth_headers(a))
    assert selected.status_code == 200
    assert selected.json()["status"] == "selected"

    mine = client.get("/api/applications/my", headers=auth_headers(student)).json()
    assert [row["status"] for row in mine] == ["selected"]


def test_faculty_directory(client, physics, make_user, auth_headers):
    make_user("800001", "faculty", research_area="Botany")

    physics_only = client.get("/api/faculty", params={"area": "Physics"}, headers=auth_headers(physics[0]))
    assert [f["login_id"] for f in physics_only.json()] == [f.login_id for f in physics]

    areas = client.get("/api/faculty/areas", headers=auth_headers(physics[0])).json()["areas"]
    assert set(areas) == {"Physics", "Botany"}


def test_admin_routes(client, make_user, auth_headers):
    admin = make_user("admin001", "admin")
    payload = {"login_id": "24BIO00007", "name": "Sam Park", "role": "student", "date_of_birth": "2002-03-04"}

    created = client.post("/api/admin/users", json=payload, headers=auth_headers(admin))
    assert created.status_code == 201
    assert created.json()["default_password"] == "040302"

    login = client.post("/api/auth/login", json={"login_id": "24BIO00007", "password": "040302"})
    assert login.json()["must_change_password"] is True
    token = login.json()["access_token"]
    changed = client.post(
        "/api/auth/change-password",
        json={"current_password": "040302", "new_password": "better-one"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert changed.status_code == 200

    again = client.post("/api/admin/users", json=payload, headers=auth_headers(admin))
    assert again.status_code == 400

    student_id = created.json()["user_id"]
    assert client.post(f"/api/admin/users/{student_id}/reset", headers=auth_headers(admin)).status_code == 200
    assert client.delete(f"/api/admin/users/{student_id}", headers=auth_headers(admin)).status_code == 200
    assert client.get("/api/admin/users", headers=auth_headers(admin)).json() == []


def test_init_demo(client):
    response = client.post("/api/init-demo")
    assert response.status_code == 200

    login = client.post("/api/auth/login", json={"login_id": "admin123", "password": "admin123"})
    assert login.status_code == 200
    assert login.json()["role"] == "admin"
