"""
Configuration Import Service

Bulk upsert of a company's reference data from one hierarchical payload.

Sections run one after another in dependency order so that every business
code a section references was written by an earlier section (or already
existed). Codes are translated to internal ids through a per-run CodeIndex;
an unknown code becomes a null foreign key instead of an error.

Each section commits on its own. A persistence failure rolls back that
section only and is reported in its ``errors``; later sections still run.
In dry-run mode every section validates, resolves and counts but writes
nothing.
"""

from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Type, Union
import hashlib
import json
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.database import Base
from app.models.calendar_event import CalendarEvent
from app.models.company import CompanySettings
from app.models.department import Department
from app.models.holiday import Holiday
from app.models.integration import Integration
from app.models.job_role import JobRole
from app.models.pto import PTOApprovalRule, PTOPolicy, PTOType
from app.models.site import Site
from app.models.system_role import RolePermission, SystemRole
from app.models.training import TrainingCourse, TrainingRequirement
from app.schemas.config_import import ImportReport, SectionResult
from app.services.audit import AuditService
from app.services.leave_service import get_company_settings

logger = logging.getLogger(__name__)

# Business code column of every table that other sections reference
REFERENCE_CODES: Dict[Type[Base], str] = {
    Site: "site_code",
    Department: "dept_code",
    SystemRole: "role_code",
    PTOType: "pto_type_code",
    TrainingCourse: "training_code",
}


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------

def flag(value: Any) -> bool:
    """Payload Y/N flags; anything but "Y" (or a real True) is False."""
    if value is True:
        return True
    return isinstance(value, str) and value.strip().upper() == "Y"


def text(value: Any, default: str = "") -> str:
    return str(value) if value not in (None, "") else default


def required(row: Dict[str, Any], key: str) -> str:
    value = row.get(key)
    if value is None or str(value).strip() == "":
        raise ValidationError(f"missing required field '{key}'")
    return str(value).strip()


def number(value: Any, default: float = 0, cast: Callable = float):
    if not value:
        return default
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ValidationError(f"invalid number {value!r}")


def optional_int(value: Any) -> Optional[int]:
    return number(value, default=None, cast=int)


def parse_date(value: Any, key: str) -> date:
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"invalid date for '{key}': {value!r}")


def parse_datetime(value: Any, key: str) -> datetime:
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"invalid timestamp for '{key}': {value!r}")


def fingerprint(*parts: Any) -> str:
    """Stable natural key for rows that carry no business code of their own."""
    encoded = json.dumps(parts, default=str, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Reference resolution
# ---------------------------------------------------------------------------

def resolve_codes(db: Session, model: Type[Base], code_attr: str) -> Dict[str, int]:
    """Load the full {business_code: id} map of one table."""
    code_column = getattr(model, code_attr)
    return {code: id_ for id_, code in db.query(model.id, code_column).all()}


class CodeIndex:
    """
    Per-run cache of code -> id lookups. A table's map is built on first use
    and dropped whenever that table is written, so later sections see the rows
    earlier sections created.

    A dry run writes nothing, so codes an earlier section would have created
    are staged instead and resolve to negative placeholder ids.
    """

    def __init__(self, db: Session):
        self.db = db
        self._maps: Dict[str, Dict[str, int]] = {}
        self._staged: Dict[str, Dict[str, int]] = {}

    def lookup(self, model: Type[Base]) -> Dict[str, int]:
        key = model.__tablename__
        if key not in self._maps:
            self._maps[key] = resolve_codes(self.db, model, REFERENCE_CODES[model])
        staged = self._staged.get(key)
        if staged:
            return {**staged, **self._maps[key]}
        return self._maps[key]

    def resolve(self, model: Type[Base], code: Any) -> Optional[int]:
        if code is None or str(code).strip() == "":
            return None
        resolved = self.lookup(model).get(str(code).strip())
        if resolved is None:
            logger.warning(f"Unresolved {model.__tablename__} code {code!r}; leaving reference empty")
        return resolved

    def stage(self, model: Type[Base], codes: Iterable[str]) -> None:
        staged = self._staged.setdefault(model.__tablename__, {})
        for code in codes:
            staged.setdefault(code, -(len(staged) + 1))

    def invalidate(self, model: Type[Base]) -> None:
        self._maps.pop(model.__tablename__, None)

    def clear(self) -> None:
        self._maps.clear()
        self._staged.clear()


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class ConfigImportService:
    def __init__(self, db: Session, dry_run: bool = False, actor_id: Optional[int] = None):
        self.db = db
        self.dry_run = dry_run
        self.actor_id = actor_id
        self.refs = CodeIndex(db)
        # Fixed dependency order: referenced tables before the tables that point at them
        self.sections: List[Tuple[str, Callable[[Any, List[str]], int]]] = [
            ("company", self._import_company),
            ("sites", self._import_sites),
            ("departments", self._import_departments),
            ("jobs_roles", self._import_job_roles),
            ("roles", self._import_roles),
            ("role_permissions", self._import_role_permissions),
            ("pto_types", self._import_pto_types),
            ("pto_policies", self._import_pto_policies),
            ("pto_approval_rules", self._import_pto_approval_rules),
            ("holidays", self._import_holidays),
            ("events", self._import_events),
            ("training_courses", self._import_training_courses),
            ("training_requirements", self._import_training_requirements),
            ("integrations", self._import_integrations),
        ]

    def run(self, payload: Dict[str, Any], import_id: Optional[Union[str, int]] = None) -> ImportReport:
        report = ImportReport(dry_run=self.dry_run, import_id=import_id)
        for name, handler in self.sections:
            data = payload.get(name)
            if not data:
                continue
            report.results[name] = self._run_section(name, handler, data)

        if not self.dry_run:
            AuditService.log(
                self.db,
                action="config_import",
                entity_type="system",
                entity_id=None,
                user_id=self.actor_id,
                details={
                    "import_id": import_id,
                    "results": {k: v.model_dump() for k, v in report.results.items()},
                },
            )
            self.db.commit()

        logger.info(
            f"Configuration import {import_id or '-'} finished (dry_run={self.dry_run}, success={report.success})"
        )
        return report

    def _run_section(self, name: str, handler: Callable[[Any, List[str]], int], data: Any) -> SectionResult:
        result = SectionResult()
        try:
            result.inserted = handler(data, result.errors)
            if not self.dry_run:
                self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            # Cached ids may point at rows that were just rolled back
            self.refs.clear()
            message = str(getattr(e, "orig", None) or e)
            logger.error(f"Import section '{name}' failed: {message}")
            result.inserted = 0
            result.errors.append(message)
            return result

        logger.info(f"Import section '{name}': {result.inserted} row(s), {len(result.errors)} error(s)")
        return result

    # --- helpers -----------------------------------------------------------

    def _build_rows(
        self,
        section: str,
        data: Any,
        builder: Callable[[Dict[str, Any]], Optional[Dict[str, Any]]],
        errors: List[str],
    ) -> List[Dict[str, Any]]:
        if not isinstance(data, list):
            errors.append(f"{section}: expected a list of rows")
            return []

        rows = []
        for index, raw in enumerate(data):
            if not isinstance(raw, dict):
                errors.append(f"{section}[{index}]: expected an object")
                continue
            try:
                row = builder(raw)
            except ValidationError as e:
                logger.warning(f"Rejected {section}[{index}]: {e.message}")
                errors.append(f"{section}[{index}]: {e.message}")
                continue
            if row is not None:
                rows.append(row)
        return rows

    def _upsert(self, model: Type[Base], key: str, rows: List[Dict[str, Any]]) -> int:
        """Insert-or-update by natural key. Returns the number of affected rows."""
        if not rows:
            return 0
        if self.dry_run:
            if model in REFERENCE_CODES:
                self.refs.stage(model, [row[key] for row in rows])
            return len(rows)

        key_column = getattr(model, key)
        codes = {row[key] for row in rows}
        existing = {
            getattr(obj, key): obj
            for obj in self.db.query(model).filter(key_column.in_(codes)).all()
        }
        for row in rows:
            obj = existing.get(row[key])
            if obj is None:
                obj = model(**row)
                self.db.add(obj)
                existing[row[key]] = obj
            else:
                for field, value in row.items():
                    setattr(obj, field, value)

        self.db.flush()
        self.refs.invalidate(model)
        return len(rows)

    # --- sections ----------------------------------------------------------

    def _import_company(self, data: Any, errors: List[str]) -> int:
        if not isinstance(data, dict):
            errors.append("company: expected an object")
            return 0
        try:
            values = {
                "company_name": required(data, "legal_name"),
                "operating_name": text(data.get("operating_name")),
                "country": text(data.get("country"), "CA"),
                "time_zone": text(data.get("time_zone"), "America/Toronto"),
                "currency": text(data.get("currency"), "CAD"),
                "week_starts_on": text(data.get("week_starts_on"), "Mon"),
                "default_language": text(data.get("default_language"), "en-CA"),
                "hr_contact_email": text(data.get("hr_contact_email")),
            }
        except ValidationError as e:
            errors.append(f"company: {e.message}")
            return 0

        if self.dry_run:
            return 1

        company = get_company_settings(self.db)
        if company is None:
            company = CompanySettings()
            self.db.add(company)
        for field, value in values.items():
            setattr(company, field, value)
        self.db.flush()
        return 1

    def _import_sites(self, data: Any, errors: List[str]) -> int:
        def build(s: Dict[str, Any]) -> Dict[str, Any]:
            return {
                "site_code": required(s, "site_id"),
                "site_name": required(s, "site_name"),
                "address_line1": text(s.get("address_line1")),
                "city": text(s.get("city")),
                "region_state": text(s.get("region_state")),
                "postal_code": text(s.get("postal_code")),
                "country": text(s.get("country"), "CA"),
                "time_zone": text(s.get("time_zone_override"), "America/Toronto"),
                "is_active": flag(s.get("is_active")),
            }

        return self._upsert(Site, "site_code", self._build_rows("sites", data, build, errors))

    def _import_departments(self, data: Any, errors: List[str]) -> int:
        def build(d: Dict[str, Any]) -> Dict[str, Any]:
            return {
                "dept_code": required(d, "dept_id"),
                "dept_name": required(d, "dept_name"),
                "site_id": self.refs.resolve(Site, d.get("site_id")),
                "cost_center_code": text(d.get("cost_center_code")),
                "is_active": flag(d.get("is_active")),
            }

        return self._upsert(Department, "dept_code", self._build_rows("departments", data, build, errors))

    def _import_job_roles(self, data: Any, errors: List[str]) -> int:
        def build(j: Dict[str, Any]) -> Dict[str, Any]:
            # The payload's employment_type_default carries the pay basis (hourly / salary)
            pay_basis = j.get("employment_type_default")
            return {
                "job_code": required(j, "job_code"),
                "job_title": required(j, "job_title"),
                "job_level": text(j.get("job_level")),
                "employment_type_default": "part_time" if pay_basis == "hourly" else "full_time",
                "compensation_type_default": text(pay_basis, "hourly"),
                "exempt_status": text(j.get("exempt_status"), "non_exempt"),
                "department_id": self.refs.resolve(Department, j.get("dept_id_default")),
                "is_active": flag(j.get("is_active")),
            }

        return self._upsert(JobRole, "job_code", self._build_rows("jobs_roles", data, build, errors))

    def _import_roles(self, data: Any, errors: List[str]) -> int:
        def build(r: Dict[str, Any]) -> Dict[str, Any]:
            return {
                "role_code": required(r, "role_code"),
                "role_name": required(r, "role_name"),
                "role_description": text(r.get("role_description")),
                "data_scope_default": text(r.get("data_scope_default"), "self"),
                "can_view_paystubs_self_only": flag(r.get("can_view_paystubs_self_only")),
                "is_active": flag(r.get("is_active")),
            }

        return self._upsert(SystemRole, "role_code", self._build_rows("roles", data, build, errors))

    def _import_role_permissions(self, data: Any, errors: List[str]) -> int:
        def build(rp: Dict[str, Any]) -> Optional[Dict[str, Any]]:
            role_code = required(rp, "role_code")
            permission_code = required(rp, "permission_code")
            role_id = self.refs.lookup(SystemRole).get(role_code)
            if role_id is None:
                # No owning role to scope the replace to
                logger.warning(f"Skipping permission {permission_code!r}: unknown role {role_code!r}")
                return None
            return {
                "role_id": role_id,
                "permission_code": permission_code,
                "allowed": flag(rp.get("allowed")),
                "scope": text(rp.get("scope"), "self"),
                "notes": text(rp.get("notes")),
            }

        rows = self._build_rows("role_permissions", data, build, errors)
        if not rows or self.dry_run:
            return len(rows)

        # Replace the full permission set of every role mentioned in the payload
        for role_id in sorted({row["role_id"] for row in rows}):
            self.db.query(RolePermission).filter(
                RolePermission.role_id == role_id
            ).delete(synchronize_session=False)
        self.db.add_all(RolePermission(**row) for row in rows)
        self.db.flush()
        return len(rows)

    def _import_pto_types(self, data: Any, errors: List[str]) -> int:
        def build(pt: Dict[str, Any]) -> Dict[str, Any]:
            return {
                "pto_type_code": required(pt, "pto_type_code"),
                "pto_type_name": required(pt, "pto_type_name"),
                "is_payable_on_termination": flag(pt.get("is_payable_on_termination")),
                "counts_toward_liability": flag(pt.get("counts_toward_liability")),
                "is_active": flag(pt.get("is_active")),
            }

        return self._upsert(PTOType, "pto_type_code", self._build_rows("pto_types", data, build, errors))

    def _import_pto_policies(self, data: Any, errors: List[str]) -> int:
        def build(pp: Dict[str, Any]) -> Dict[str, Any]:
            return {
                "policy_code": required(pp, "policy_id"),
                "policy_name": required(pp, "policy_name"),
                "pto_type_id": self.refs.resolve(PTOType, pp.get("pto_type_code")),
                "applies_to_role_id": self.refs.resolve(SystemRole, pp.get("applies_to_role_code")),
                "accrual_method": text(pp.get("accrual_method"), "entitlement"),
                "annual_entitlement_hours": number(pp.get("annual_entitlement_hours")),
                "accrual_rate_hours_per_payperiod": number(pp.get("accrual_rate_hours_per_payperiod")),
                "carryover_cap_hours": number(pp.get("carryover_cap_hours")),
                "balance_cap_hours": number(pp.get("balance_cap_hours")),
                "waiting_period_days": number(pp.get("waiting_period_days"), cast=int),
                "allow_negative_balance": flag(pp.get("allow_negative_balance")),
            }

        return self._upsert(PTOPolicy, "policy_code", self._build_rows("pto_policies", data, build, errors))

    def _import_pto_approval_rules(self, data: Any, errors: List[str]) -> int:
        def build(ar: Dict[str, Any]) -> Dict[str, Any]:
            return {
                "rule_code": required(ar, "rule_id"),
                "pto_type_id": self.refs.resolve(PTOType, ar.get("pto_type_code")),
                "max_days_auto_approve": optional_int(ar.get("max_days_auto_approve")),
                "approver_type": text(ar.get("approver_type"), "manager"),
                "approver_identifier": text(ar.get("approver_identifier")),
                "backup_approver_identifier": text(ar.get("backup_approver_identifier")),
                "escalation_threshold_days": optional_int(ar.get("escalation_threshold_days")),
                "sla_hours": number(ar.get("sla_hours"), default=48, cast=int),
                "notes": text(ar.get("notes")),
            }

        return self._upsert(
            PTOApprovalRule, "rule_code", self._build_rows("pto_approval_rules", data, build, errors)
        )

    def _import_holidays(self, data: Any, errors: List[str]) -> int:
        def build(h: Dict[str, Any]) -> Dict[str, Any]:
            return {
                "holiday_code": required(h, "holiday_id"),
                "holiday_name": required(h, "holiday_name"),
                "date": parse_date(required(h, "date"), "date"),
                "country": text(h.get("country"), "CA"),
                "region_state": text(h.get("region_state")),
                "site_id": self.refs.resolve(Site, h.get("site_id")),
                "is_paid": flag(h.get("is_paid")),
                "notes": text(h.get("notes")),
            }

        return self._upsert(Holiday, "holiday_code", self._build_rows("holidays", data, build, errors))

    def _import_events(self, data: Any, errors: List[str]) -> int:
        def build(e: Dict[str, Any]) -> Dict[str, Any]:
            event_type = required(e, "event_type")
            title = required(e, "title")
            date_ts = parse_datetime(required(e, "date_ts"), "date_ts")
            scope = text(e.get("scope"), "company")
            site_code = text(e.get("site_id"))
            return {
                "fingerprint": fingerprint("event", event_type, title, date_ts.isoformat(), scope, site_code),
                "event_type": event_type,
                "title": title,
                "date_ts": date_ts,
                "scope": scope,
                "site_id": self.refs.resolve(Site, site_code),
                "description": text(e.get("notes")),
            }

        return self._upsert(CalendarEvent, "fingerprint", self._build_rows("events", data, build, errors))

    def _import_training_courses(self, data: Any, errors: List[str]) -> int:
        def build(tc: Dict[str, Any]) -> Dict[str, Any]:
            return {
                "training_code": required(tc, "training_code"),
                "training_name": required(tc, "training_name"),
                "category": text(tc.get("category")),
                "default_expiry_months": optional_int(tc.get("default_expiry_months")),
                "delivery_method": text(tc.get("delivery_method"), "in_person"),
                "is_mandatory_possible": flag(tc.get("is_mandatory_possible")),
                "is_active": flag(tc.get("is_active")),
            }

        return self._upsert(
            TrainingCourse, "training_code", self._build_rows("training_courses", data, build, errors)
        )

    def _import_training_requirements(self, data: Any, errors: List[str]) -> int:
        def build(tr: Dict[str, Any]) -> Dict[str, Any]:
            training_code = text(tr.get("training_code"))
            role_code = text(tr.get("applies_to_role_code"))
            site_code = text(tr.get("site_id"))
            dept_code = text(tr.get("dept_id"))
            return {
                "fingerprint": fingerprint("training_requirement", training_code, role_code, site_code, dept_code),
                "training_course_id": self.refs.resolve(TrainingCourse, training_code),
                "applies_to_role_id": self.refs.resolve(SystemRole, role_code),
                "site_id": self.refs.resolve(Site, site_code),
                "department_id": self.refs.resolve(Department, dept_code),
                "required_by_days_from_hire": optional_int(tr.get("required_by_days_from_hire")),
                "expiry_months_override": optional_int(tr.get("expiry_months_override")),
                "block_work_if_incomplete": flag(tr.get("block_work_if_incomplete")),
                "notes": text(tr.get("notes")),
            }

        return self._upsert(
            TrainingRequirement, "fingerprint", self._build_rows("training_requirements", data, build, errors)
        )

    def _import_integrations(self, data: Any, errors: List[str]) -> int:
        def build(i: Dict[str, Any]) -> Dict[str, Any]:
            return {
                "integration_code": required(i, "integration_id"),
                "system_name": required(i, "system_name"),
                "integration_type": text(i.get("integration_type")),
                "direction": text(i.get("direction"), "inbound"),
                "enabled": flag(i.get("enabled")),
                "owner_email": text(i.get("owner_email")),
                "frequency": text(i.get("frequency"), "on_demand"),
                "notes": text(i.get("notes")),
            }

        return self._upsert(Integration, "integration_code", self._build_rows("integrations", data, build, errors))
