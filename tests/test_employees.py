import pytest
from datetime import date
from app.core.exceptions import NotFoundError, ValidationError
from app.models.audit_log import AuditLog
from app.models.employee import Employee
from app.models.user import User, UserRole
from app.schemas.employee import EmployeeCreate
from app.services import auth as auth_service
from app.services import employee_service, leave_service

MONDAY = date(2024, 1, 1)


def _new_hire(**overrides):
    data = {"first_name": "Priya", "last_name": "Shah", "email": "priya.shah@acme.com", "job_title": "Analyst"}
    data.update(overrides)
    return EmployeeCreate(**data)


# --- service ----------------------------------------------------------------

def test_create_employee_uses_company_defaults(db_session, company_settings, admin_user):
    employee = employee_service.create_employee(db_session, _new_hire(), actor_id=admin_user.id)
    assert employee.vacation_days_entitled == 15
    assert employee.vacation_days_remaining == 15
    assert employee.sick_days_entitled == 10
    assert employee.sick_days_remaining == 10
    assert db_session.query(User).filter_by(email="priya.shah@acme.com").first() is None

    entry = db_session.query(AuditLog).filter_by(action="create_employee").one()
    assert entry.entity_id == employee.id
    assert entry.user_id == admin_user.id

def test_create_employee_with_login_can_request_leave(db_session, company_settings):
    employee = employee_service.create_employee(
        db_session, _new_hire(password="Welcome123!", vacation_days_entitled=20, sick_days_entitled=5)
    )
    user = db_session.query(User).filter_by(email="priya.shah@acme.com").one()
    assert user.employee_id == employee.id
    assert user.role == UserRole.EMPLOYEE
    assert auth_service.verify_password("Welcome123!", user.hashed_password)
    assert employee.vacation_days_remaining == 20

    leave = leave_service.submit(db_session, employee.id, "sick", MONDAY, MONDAY, policy=leave_service.get_policy(db_session))
    assert leave.status == "auto_approved"

def test_create_employee_rejects_duplicate_email(db_session, employee):
    with pytest.raises(ValidationError):
        employee_service.create_employee(db_session, _new_hire(email=employee.email))

def test_update_entitlements_leaves_remaining_alone(db_session, employee, admin_user):
    updated = employee_service.update_employee(
        db_session, employee.id, {"vacation_days_entitled": 20, "job_title": "Lead"}, actor_id=admin_user.id
    )
    assert updated.vacation_days_entitled == 20
    assert updated.vacation_days_remaining == 15
    assert updated.job_title == "Lead"

    entry = db_session.query(AuditLog).filter_by(action="update_employee").one()
    assert entry.details["previous"]["vacation_days_entitled"] == 15
    assert entry.details["changes"]["vacation_days_entitled"] == 20

def test_update_unknown_employee(db_session):
    with pytest.raises(NotFoundError):
        employee_service.update_employee(db_session, 4040, {"job_title": "Ghost"})

def test_directory_hides_terminated_and_sorts_by_last_name(db_session, employee):
    db_session.add_all([
        Employee(first_name="Alex", last_name="Zimmer", email="alex@acme.com"),
        Employee(first_name="Sam", last_name="Abbott", email="sam@acme.com"),
        Employee(first_name="Lee", last_name="Gone", email="lee@acme.com", termination_date=date(2023, 12, 31)),
    ])
    db_session.commit()

    names = [e.last_name for e in employee_service.list_employees(db_session)]
    assert names == ["Abbott", "Rivera", "Zimmer"]
    assert len(employee_service.list_employees(db_session, include_terminated=True)) == 4
    assert [e.last_name for e in employee_service.list_employees(db_session, search="zim")] == ["Zimmer"]


# --- HTTP -------------------------------------------------------------------

def test_admin_onboards_employee_end_to_end(client, admin_user, company_settings, auth_headers):
    created = client.post(
        "/api/employees",
        headers=auth_headers(admin_user),
        json={"first_name": "Priya", "last_name": "Shah", "email": "priya.shah@acme.com", "password": "Welcome123!"},
    )
    assert created.status_code == 201
    assert created.json()["sick_days_remaining"] == 10

    login = client.post("/api/auth/login", json={"email": "priya.shah@acme.com", "password": "Welcome123!"})
    token = login.json()["access_token"]
    leave = client.post(
        "/api/leave/requests",
        headers={"Authorization": f"Bearer {token}"},
        json={"leave_type": "vacation", "start_date": MONDAY.isoformat(), "end_date": MONDAY.isoformat()},
    )
    assert leave.status_code == 201

def test_employee_detail_includes_leave_history(client, manager_user, employee, auth_headers, db_session):
    first = leave_service.submit(db_session, employee.id, "vacation", MONDAY, MONDAY)
    second = leave_service.submit(db_session, employee.id, "unpaid", MONDAY, MONDAY)

    response = client.get(f"/api/employees/{employee.id}", headers=auth_headers(manager_user))
    assert response.status_code == 200
    body = response.json()
    assert body["email"] == employee.email
    assert [r["id"] for r in body["leave_requests"]] == [second.id, first.id]

def test_employee_detail_unknown(client, manager_user, auth_headers):
    response = client.get("/api/employees/999", headers=auth_headers(manager_user))
    assert response.status_code == 404

def test_manager_can_browse_but_not_edit(client, manager_user, employee, auth_headers):
    headers = auth_headers(manager_user)
    listing = client.get("/api/employees", headers=headers)
    assert [e["id"] for e in listing.json()] == [employee.id]

    patch = client.patch(f"/api/employees/{employee.id}", headers=headers, json={"sick_days_entitled": 12})
    assert patch.status_code == 403
    assert client.post("/api/employees", headers=headers, json={"first_name": "X", "email": "x@acme.com"}).status_code == 403

def test_employee_role_cannot_browse_directory(client, employee_user, auth_headers):
    assert client.get("/api/employees", headers=auth_headers(employee_user)).status_code == 403

def test_admin_edits_entitlements(client, admin_user, employee, auth_headers):
    response = client.patch(
        f"/api/employees/{employee.id}",
        headers=auth_headers(admin_user),
        json={"vacation_days_entitled": 18, "sick_days_entitled": 12},
    )
    assert response.status_code == 200
    assert response.json()["vacation_days_entitled"] == 18
    assert response.json()["sick_days_entitled"] == 12

def test_entitlement_cannot_be_nulled_or_negative(client, admin_user, employee, auth_headers):
    headers = auth_headers(admin_user)
    assert client.patch(f"/api/employees/{employee.id}", headers=headers, json={"sick_days_entitled": None}).status_code == 422
    assert client.patch(f"/api/employees/{employee.id}", headers=headers, json={"sick_days_entitled": -1}).status_code == 422
