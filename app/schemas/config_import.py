from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional, Union

Row = Dict[str, Any]


class ConfigImportPayload(BaseModel):
    """
    Hierarchical reference-data payload. Every section is optional; rows keep
    the payload vocabulary (e.g. ``site_id`` holds a site code) and are
    translated by the import service.
    """
    model_config = ConfigDict(extra="ignore")

    company: Optional[Row] = None
    sites: Optional[List[Row]] = None
    departments: Optional[List[Row]] = None
    jobs_roles: Optional[List[Row]] = None
    roles: Optional[List[Row]] = None
    role_permissions: Optional[List[Row]] = None
    pto_types: Optional[List[Row]] = None
    pto_policies: Optional[List[Row]] = None
    pto_approval_rules: Optional[List[Row]] = None
    holidays: Optional[List[Row]] = None
    events: Optional[List[Row]] = None
    training_courses: Optional[List[Row]] = None
    training_requirements: Optional[List[Row]] = None
    integrations: Optional[List[Row]] = None

    dry_run: bool = False
    import_id: Optional[Union[str, int]] = None


class SectionResult(BaseModel):
    inserted: int = 0
    errors: List[str] = Field(default_factory=list)


class ImportReport(BaseModel):
    dry_run: bool
    import_id: Optional[Union[str, int]] = None
    results: Dict[str, SectionResult] = Field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not any(result.errors for result in self.results.values())

    @property
    def status_code(self) -> int:
        # 207 Multi-Status: at least one section reported errors
        return 200 if self.success else 207

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "dry_run": self.dry_run,
            "import_id": self.import_id,
            "results": {name: result.model_dump() for name, result in self.results.items()},
        }
