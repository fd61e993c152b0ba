from sqlalchemy.exc import OperationalError
from app.models.audit_log import AuditLog
from app.models.calendar_event import CalendarEvent
from app.models.company import CompanySettings
from app.models.department import Department
from app.models.holiday import Holiday
from app.models.site import Site
from app.models.system_role import RolePermission, SystemRole
from app.models.training import TrainingRequirement
from app.services.config_import import ConfigImportService, flag, fingerprint, resolve_codes


def _sites(*codes, suffix=""):
    return [{"site_id": code, "site_name": f"Site {code}{suffix}", "is_active": "Y"} for code in codes]


def test_flag_only_accepts_yes():
    assert flag("Y")
    assert flag(" y ")
    assert flag(True)
    for value in ("N", "", None, "yes", 1, False):
        assert not flag(value)

def test_fingerprint_is_stable():
    assert fingerprint("event", "a", 1) == fingerprint("event", "a", 1)
    assert fingerprint("event", "a", 1) != fingerprint("event", "a", 2)

def test_resolve_codes_maps_codes_to_ids(db_session):
    ConfigImportService(db_session).run({"sites": _sites("TOR", "VAN")})
    mapping = resolve_codes(db_session, Site, "site_code")
    assert set(mapping) == {"TOR", "VAN"}
    assert mapping["TOR"] == db_session.query(Site).filter_by(site_code="TOR").one().id


# --- idempotency ------------------------------------------------------------

def test_reimport_updates_in_place(db_session):
    first = ConfigImportService(db_session).run({"sites": _sites("TOR", "VAN")})
    assert first.results["sites"].inserted == 2

    second = ConfigImportService(db_session).run({"sites": _sites("TOR", "VAN", suffix=" (renamed)")})
    assert second.success
    assert db_session.query(Site).count() == 2
    names = {s.site_name for s in db_session.query(Site).all()}
    assert names == {"Site TOR (renamed)", "Site VAN (renamed)"}

def test_events_are_not_duplicated_on_reimport(db_session):
    payload = {
        "events": [
            {"event_type": "town_hall", "title": "Q1 Town Hall", "date_ts": "2024-03-01T15:00:00", "scope": "company"},
        ]
    }
    ConfigImportService(db_session).run(payload)
    ConfigImportService(db_session).run(payload)
    assert db_session.query(CalendarEvent).count() == 1

def test_training_requirements_are_not_duplicated_on_reimport(db_session):
    payload = {
        "training_courses": [{"training_code": "WHMIS", "training_name": "WHMIS", "is_active": "Y"}],
        "training_requirements": [{"training_code": "WHMIS", "required_by_days_from_hire": "30"}],
    }
    ConfigImportService(db_session).run(payload)
    report = ConfigImportService(db_session).run(payload)
    assert report.success
    requirement = db_session.query(TrainingRequirement).one()
    assert requirement.training_course_id is not None
    assert requirement.required_by_days_from_hire == 30


# --- reference resolution ---------------------------------------------------

def test_codes_resolve_within_same_payload(db_session):
    report = ConfigImportService(db_session).run({
        "sites": _sites("TOR"),
        "departments": [{"dept_id": "OPS", "dept_name": "Operations", "site_id": "TOR", "is_active": "Y"}],
        "holidays": [{"holiday_id": "CANADA-DAY", "holiday_name": "Canada Day", "date": "2024-07-01", "site_id": "TOR", "is_paid": "Y"}],
    })
    assert report.success
    site = db_session.query(Site).filter_by(site_code="TOR").one()
    assert db_session.query(Department).filter_by(dept_code="OPS").one().site_id == site.id
    holiday = db_session.query(Holiday).filter_by(holiday_code="CANADA-DAY").one()
    assert holiday.site_id == site.id
    assert holiday.is_paid

def test_unknown_reference_becomes_null(db_session):
    report = ConfigImportService(db_session).run({
        "departments": [{"dept_id": "OPS", "dept_name": "Operations", "site_id": "NOPE"}],
    })
    assert report.success
    assert report.results["departments"].errors == []
    assert db_session.query(Department).filter_by(dept_code="OPS").one().site_id is None


# --- role permissions -------------------------------------------------------

def test_role_permissions_scoped_to_role(db_session):
    ConfigImportService(db_session).run({
        "roles": [{"role_code": "MGR", "role_name": "Manager", "is_active": "Y"}],
        "role_permissions": [
            {"role_code": "MGR", "permission_code": "pto.approve", "allowed": "Y", "scope": "department"},
        ],
    })
    role = db_session.query(SystemRole).filter_by(role_code="MGR").one()
    permission = db_session.query(RolePermission).filter_by(role_id=role.id).one()
    assert permission.permission_code == "pto.approve"
    assert permission.allowed is True
    assert permission.scope == "department"

def test_role_permissions_are_replaced_on_reimport(db_session):
    roles = [{"role_code": "MGR", "role_name": "Manager"}, {"role_code": "EMP", "role_name": "Employee"}]
    ConfigImportService(db_session).run({
        "roles": roles,
        "role_permissions": [
            {"role_code": "MGR", "permission_code": "pto.approve", "allowed": "Y"},
            {"role_code": "MGR", "permission_code": "pto.view_team", "allowed": "Y"},
            {"role_code": "EMP", "permission_code": "pto.request", "allowed": "Y"},
        ],
    })
    ConfigImportService(db_session).run({
        "role_permissions": [{"role_code": "MGR", "permission_code": "pto.view_team", "allowed": "N"}],
    })

    mgr = db_session.query(SystemRole).filter_by(role_code="MGR").one()
    emp = db_session.query(SystemRole).filter_by(role_code="EMP").one()
    mgr_permissions = db_session.query(RolePermission).filter_by(role_id=mgr.id).all()
    assert [(p.permission_code, p.allowed) for p in mgr_permissions] == [("pto.view_team", False)]
    # Roles absent from the payload keep their permissions
    assert db_session.query(RolePermission).filter_by(role_id=emp.id).count() == 1

def test_permissions_for_unknown_role_are_skipped(db_session):
    report = ConfigImportService(db_session).run({
        "role_permissions": [{"role_code": "GHOST", "permission_code": "pto.approve", "allowed": "Y"}],
    })
    assert report.success
    assert report.results["role_permissions"].inserted == 0
    assert db_session.query(RolePermission).count() == 0


# --- dry run ----------------------------------------------------------------

def test_dry_run_counts_but_writes_nothing(db_session):
    payload = {"sites": _sites("A", "B", "C", "D", "E")}
    dry = ConfigImportService(db_session, dry_run=True).run(payload, import_id="dry-1")
    assert dry.dry_run
    assert dry.results["sites"].inserted == 5
    assert db_session.query(Site).count() == 0
    assert db_session.query(AuditLog).count() == 0

    real = ConfigImportService(db_session).run(payload, import_id="real-1")
    assert real.results["sites"].inserted == 5
    assert db_session.query(Site).count() == 5


# --- errors -----------------------------------------------------------------

def test_row_errors_are_reported_and_other_rows_written(db_session):
    report = ConfigImportService(db_session).run({
        "sites": [{"site_id": "TOR", "site_name": "Toronto"}, {"site_name": "No code"}],
    })
    assert not report.success
    assert report.status_code == 207
    assert report.results["sites"].inserted == 1
    assert report.results["sites"].errors == ["sites[1]: missing required field 'site_id'"]
    assert db_session.query(Site).count() == 1

def test_invalid_date_is_a_row_error(db_session):
    report = ConfigImportService(db_session).run({
        "holidays": [{"holiday_id": "H1", "holiday_name": "Bad", "date": "someday"}],
    })
    assert "holidays[0]: invalid date" in report.results["holidays"].errors[0]
    assert db_session.query(Holiday).count() == 0

def test_failing_section_does_not_stop_later_sections(db_session, monkeypatch):
    def broken_sites(self, data, errors):
        raise OperationalError("INSERT INTO sites", {}, Exception("database is locked"))

    monkeypatch.setattr(ConfigImportService, "_import_sites", broken_sites)
    report = ConfigImportService(db_session).run({
        "company": {"legal_name": "Acme Corp"},
        "sites": _sites("TOR"),
        "roles": [{"role_code": "MGR", "role_name": "Manager"}],
    })

    assert not report.success
    assert report.results["sites"].inserted == 0
    assert report.results["sites"].errors == ["database is locked"]
    assert report.results["roles"].inserted == 1
    assert db_session.query(SystemRole).count() == 1
    assert db_session.query(CompanySettings).one().company_name == "Acme Corp"


# --- company ----------------------------------------------------------------

def test_company_section_creates_then_updates_singleton(db_session):
    ConfigImportService(db_session).run({"company": {"legal_name": "Acme Corp", "currency": "USD"}})
    company = db_session.query(CompanySettings).one()
    assert company.currency == "USD"
    assert company.time_zone == "America/Toronto"

    ConfigImportService(db_session).run({"company": {"legal_name": "Acme Holdings"}})
    assert db_session.query(CompanySettings).count() == 1
    db_session.refresh(company)
    assert company.company_name == "Acme Holdings"

def test_company_requires_legal_name(db_session, company_settings):
    report = ConfigImportService(db_session).run({"company": {"operating_name": "Acme"}})
    assert report.results["company"].errors == ["company: missing required field 'legal_name'"]
    db_session.refresh(company_settings)
    assert company_settings.company_name == "Acme Corp"

def test_import_is_audited(db_session, admin_user):
    ConfigImportService(db_session, actor_id=admin_user.id).run({"sites": _sites("TOR")}, import_id="imp-7")
    entry = db_session.query(AuditLog).filter_by(action="config_import").one()
    assert entry.user_id == admin_user.id
    assert entry.details["import_id"] == "imp-7"
    assert entry.details["results"]["sites"]["inserted"] == 1


# --- section mappings -------------------------------------------------------

def test_job_roles_map_pay_basis_and_department(db_session):
    from app.models.job_role import JobRole

    report = ConfigImportService(db_session).run({
        "departments": [{"dept_id": "OPS", "dept_name": "Operations"}],
        "jobs_roles": [
            {"job_code": "CSR", "job_title": "Customer Service Rep", "employment_type_default": "hourly",
             "dept_id_default": "OPS", "is_active": "Y"},
            {"job_code": "MGR", "job_title": "Store Manager", "employment_type_default": "salary",
             "exempt_status": "exempt"},
        ],
    })
    assert report.success
    dept = db_session.query(Department).filter_by(dept_code="OPS").one()
    csr = db_session.query(JobRole).filter_by(job_code="CSR").one()
    assert csr.employment_type_default == "part_time"
    assert csr.compensation_type_default == "hourly"
    assert csr.department_id == dept.id
    assert csr.is_active is True
    mgr = db_session.query(JobRole).filter_by(job_code="MGR").one()
    assert mgr.employment_type_default == "full_time"
    assert mgr.compensation_type_default == "salary"
    assert mgr.exempt_status == "exempt"
    assert mgr.department_id is None
    assert mgr.is_active is False

def test_pto_types_flags(db_session):
    from app.models.pto import PTOType

    ConfigImportService(db_session).run({
        "pto_types": [{"pto_type_code": "VAC", "pto_type_name": "Vacation", "is_payable_on_termination": "Y",
                       "counts_toward_liability": "N", "is_active": "Y"}],
    })
    vac = db_session.query(PTOType).filter_by(pto_type_code="VAC").one()
    assert vac.is_payable_on_termination is True
    assert vac.counts_toward_liability is False
    assert vac.is_active is True

def test_pto_policies_resolve_codes_and_default_numbers(db_session):
    from app.models.pto import PTOPolicy, PTOType

    report = ConfigImportService(db_session).run({
        "roles": [{"role_code": "EMP", "role_name": "Employee"}],
        "pto_types": [{"pto_type_code": "VAC", "pto_type_name": "Vacation"}],
        "pto_policies": [
            {"policy_id": "VAC-STD", "policy_name": "Standard vacation", "pto_type_code": "VAC",
             "applies_to_role_code": "EMP", "annual_entitlement_hours": "80"},
            {"policy_id": "VAC-BAD", "policy_name": "Broken", "carryover_cap_hours": "lots"},
        ],
    })
    assert report.results["pto_policies"].inserted == 1
    assert report.results["pto_policies"].errors == ["pto_policies[1]: invalid number 'lots'"]

    policy = db_session.query(PTOPolicy).filter_by(policy_code="VAC-STD").one()
    assert policy.pto_type_id == db_session.query(PTOType).filter_by(pto_type_code="VAC").one().id
    assert policy.applies_to_role_id == db_session.query(SystemRole).filter_by(role_code="EMP").one().id
    assert policy.accrual_method == "entitlement"
    assert policy.annual_entitlement_hours == 80
    assert policy.accrual_rate_hours_per_payperiod == 0
    assert policy.carryover_cap_hours == 0
    assert policy.waiting_period_days == 0
    assert policy.allow_negative_balance is False

def test_pto_approval_rules_defaults(db_session):
    from app.models.pto import PTOApprovalRule

    ConfigImportService(db_session).run({
        "pto_approval_rules": [{"rule_id": "R-SICK", "max_days_auto_approve": "3"}],
    })
    rule = db_session.query(PTOApprovalRule).filter_by(rule_code="R-SICK").one()
    assert rule.max_days_auto_approve == 3
    assert rule.approver_type == "manager"
    assert rule.sla_hours == 48
    assert rule.escalation_threshold_days is None
    assert rule.pto_type_id is None

def test_training_courses_defaults(db_session):
    from app.models.training import TrainingCourse

    ConfigImportService(db_session).run({
        "training_courses": [{"training_code": "FIRST-AID", "training_name": "First Aid", "default_expiry_months": "36"}],
    })
    course = db_session.query(TrainingCourse).filter_by(training_code="FIRST-AID").one()
    assert course.delivery_method == "in_person"
    assert course.default_expiry_months == 36
    assert course.is_mandatory_possible is False

def test_integrations_defaults(db_session):
    from app.models.integration import Integration

    ConfigImportService(db_session).run({
        "integrations": [{"integration_id": "PAYROLL", "system_name": "Payroll Provider", "enabled": "Y"}],
    })
    integration = db_session.query(Integration).filter_by(integration_code="PAYROLL").one()
    assert integration.direction == "inbound"
    assert integration.frequency == "on_demand"
    assert integration.enabled is True


# --- code normalisation and dry-run resolution ------------------------------

def test_padded_reference_codes_resolve(db_session):
    report = ConfigImportService(db_session).run({
        "sites": [{"site_id": " TOR ", "site_name": "Toronto"}],
        "departments": [{"dept_id": "OPS", "dept_name": "Operations", "site_id": " TOR "}],
    })
    assert report.success
    site = db_session.query(Site).one()
    assert site.site_code == "TOR"
    assert db_session.query(Department).filter_by(dept_code="OPS").one().site_id == site.id

def test_dry_run_counts_permissions_of_roles_in_same_payload(db_session):
    payload = {
        "roles": [{"role_code": "MGR", "role_name": "Manager"}],
        "role_permissions": [{"role_code": "MGR", "permission_code": "pto.approve", "allowed": "Y"}],
    }
    dry = ConfigImportService(db_session, dry_run=True).run(payload)
    assert dry.results["roles"].inserted == 1
    assert dry.results["role_permissions"].inserted == 1
    assert db_session.query(SystemRole).count() == 0
    assert db_session.query(RolePermission).count() == 0

    real = ConfigImportService(db_session).run(payload)
    assert real.results["role_permissions"].inserted == dry.results["role_permissions"].inserted

def test_dry_run_resolves_codes_created_earlier_in_payload(db_session):
    service = ConfigImportService(db_session, dry_run=True)
    service.run({"sites": _sites("TOR")})
    assert service.refs.resolve(Site, "TOR") is not None
    assert service.refs.resolve(Site, "VAN") is None
