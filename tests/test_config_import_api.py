from fastapi import status
from app.models.site import Site
from app.services.config_import import ConfigImportService

PAYLOAD = {
    "import_id": "onboarding-2024-01",
    "company": {"legal_name": "Acme Corp", "hr_contact_email": "hr@acme.com"},
    "sites": [{"site_id": "TOR", "site_name": "Toronto HQ", "is_active": "Y"}],
    "departments": [{"dept_id": "OPS", "dept_name": "Operations", "site_id": "TOR", "is_active": "Y"}],
}


def test_import_requires_authentication(client):
    response = client.post("/api/import-config", json=PAYLOAD)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

def test_import_is_admin_only(client, employee_user, auth_headers):
    response = client.post("/api/import-config", json=PAYLOAD, headers=auth_headers(employee_user))
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_admin_import_reports_each_section(client, admin_user, auth_headers, db_session):
    response = client.post("/api/import-config", json=PAYLOAD, headers=auth_headers(admin_user))
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["success"] is True
    assert body["dry_run"] is False
    assert body["import_id"] == "onboarding-2024-01"
    assert body["results"]["sites"] == {"inserted": 1, "errors": []}
    assert body["results"]["departments"]["inserted"] == 1
    # Sections absent from the payload are not reported
    assert "holidays" not in body["results"]
    assert db_session.query(Site).count() == 1

def test_dry_run_over_http(client, admin_user, auth_headers, db_session):
    response = client.post("/api/import-config", json={**PAYLOAD, "dry_run": True}, headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert response.json()["dry_run"] is True
    assert db_session.query(Site).count() == 0

def test_partial_failure_returns_multi_status(client, admin_user, auth_headers):
    payload = {"sites": [{"site_id": "TOR", "site_name": "Toronto"}, {"site_id": "VAN"}]}
    response = client.post("/api/import-config", json=payload, headers=auth_headers(admin_user))
    assert response.status_code == 207
    body = response.json()
    assert body["success"] is False
    assert body["results"]["sites"]["inserted"] == 1
    assert body["results"]["sites"]["errors"] == ["sites[1]: missing required field 'site_name'"]

def test_unexpected_failure_returns_500(client, admin_user, auth_headers, monkeypatch):
    def explode(self, payload, import_id=None):
        raise RuntimeError("disk full")

    monkeypatch.setattr(ConfigImportService, "run", explode)
    response = client.post("/api/import-config", json=PAYLOAD, headers=auth_headers(admin_user))
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Configuration import failed"}

def test_numeric_import_id_is_echoed(client, admin_user, auth_headers):
    response = client.post(
        "/api/import-config",
        json={"import_id": 20240115, "sites": [{"site_id": "TOR", "site_name": "Toronto"}]},
        headers=auth_headers(admin_user),
    )
    assert response.status_code == 200
    assert response.json()["import_id"] == 20240115

def test_rejections_carry_error_codes(client, employee_user, auth_headers):
    unauthenticated = client.post("/api/import-config", json=PAYLOAD)
    assert unauthenticated.json()["errors"][0]["code"] == "AUTH_FAILED"
    assert unauthenticated.headers["WWW-Authenticate"] == "Bearer"

    forbidden = client.post("/api/import-config", json=PAYLOAD, headers=auth_headers(employee_user))
    assert forbidden.json()["errors"][0]["code"] == "PERMISSION_DENIED"
