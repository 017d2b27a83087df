import os
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status

from servicecrm.adapters.clock import SystemClock
from servicecrm.adapters.sqlite.repos import SQLiteRecordStore, SQLiteUserRepo
from servicecrm.api.auth_utils import decode_access_token, extract_token
from servicecrm.domain.entities import Role
from servicecrm.domain.policy import AccessPolicy
from servicecrm.rules.loader import load_rules
from servicecrm.rules.models import Rules
from servicecrm.services.records import RecordService


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("CRM_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "crm.db")
        self.rules_path = Path(os.environ.get("CRM_RULES_PATH", str(self.base_dir / "rules.yaml")))


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules & Policy ---
@lru_cache
def _rules_at(path: Path) -> Rules:
    return load_rules(path)


@lru_cache
def _policy_at(path: Path) -> AccessPolicy:
    return AccessPolicy(_rules_at(path).access)


def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return _rules_at(settings.rules_path)


def get_access_policy(settings: Settings = Depends(get_settings)) -> AccessPolicy:
    return _policy_at(settings.rules_path)


def policy_from_settings() -> AccessPolicy:
    """Policy for callers outside dependency injection (middleware)."""
    return _policy_at(get_settings().rules_path)


# --- Adapters ---
def get_clock(rules: Rules = Depends(get_rules)) -> SystemClock:
    return SystemClock(rules.finance.timezone)


def get_record_store(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> SQLiteRecordStore:
    return SQLiteRecordStore(settings.db_path, timeout=rules.ops.db_timeout_seconds)


def get_user_repo(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> SQLiteUserRepo:
    return SQLiteUserRepo(settings.db_path, timeout=rules.ops.db_timeout_seconds)


# --- Services ---
def get_record_service(
    store: SQLiteRecordStore = Depends(get_record_store),
    clock: SystemClock = Depends(get_clock),
) -> RecordService:
    return RecordService(repo=store, clock=clock)


# --- Session ---
@dataclass(frozen=True)
class Session:
    """Identity carried by a signed session token."""

    user_id: UUID
    role: Role
    email: str = ""


def session_from_token(token: str | None) -> Session | None:
    if not token:
        return None
    payload = decode_access_token(token)
    if not payload:
        return None
    try:
        return Session(
            user_id=UUID(str(payload["sub"])),
            role=Role(payload["role"]),
            email=str(payload.get("email", "")),
        )
    except (KeyError, ValueError):
        return None


def get_session(request: Request) -> Session:
    session = session_from_token(extract_token(request))
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session


def require_section(section: str) -> Callable[..., Session]:
    """
    Dependency factory: the session's role must reach the dashboard section
    bound to `section` in rules.endpoints.
    """

    def _check(
        session: Session = Depends(get_session),
        rules: Rules = Depends(get_rules),
        policy: AccessPolicy = Depends(get_access_policy),
    ) -> Session:
        prefix = getattr(rules.endpoints, section)
        if not policy.is_path_allowed(session.role, prefix):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return session

    return _check
