from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class AccessRules(BaseModel):
    """Role tables for navigation and path gating.

    Role keys are kept as plain strings here so that a missing or unknown
    role is reported by the policy loader as a configuration error rather
    than as a schema error.
    """

    model_config = ConfigDict(frozen=True)

    protected_prefixes: list[str]
    nav_paths: dict[str, str]
    nav: dict[str, list[str]]
    paths: dict[str, list[str]]


class FinanceRules(BaseModel):
    model_config = ConfigDict(frozen=True)

    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value


class EndpointAccessRules(BaseModel):
    """Dashboard section each API surface is bound to."""

    finances: str = "/dashboard/finances"
    quotations: str = "/dashboard/quotations"
    expenses: str = "/dashboard/expenses"


class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)
    db_timeout_seconds: float = 5.0


class Rules(BaseModel):
    project: ProjectRules
    access: AccessRules
    finance: FinanceRules = Field(default_factory=FinanceRules)
    endpoints: EndpointAccessRules = Field(default_factory=EndpointAccessRules)
    ops: OpsRules = Field(default_factory=OpsRules)
