"""
Role-based navigation and path access policy.

Two fixed tables keyed by Role: the navigation items each role sees (in menu
order) and the path prefixes each role may reach. Both are declared in
rules.yaml and validated once at load time; a role missing from either table
is a ConfigurationError, never an empty grant.

Matching is plain string prefix comparison. The most specific prefix declared
anywhere in the policy governs a path, so a role holding only "/dashboard"
does not reach "/dashboard/expenses" when that section is declared for other
roles. Anything not covered is denied.
"""

from collections.abc import Mapping
from types import MappingProxyType

from servicecrm.domain.entities import Role
from servicecrm.domain.errors import ConfigurationError
from servicecrm.rules.models import AccessRules

ADMIN_PREFIX = "/admin"


def _coerce_role(role: Role | str | None) -> Role | None:
    if role is None or isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        return None


def _build_table(table: dict[str, list[str]], name: str) -> dict[Role, tuple[str, ...]]:
    unknown = sorted(set(table) - {r.value for r in Role})
    if unknown:
        raise ConfigurationError(f"Unknown role(s) in {name} table: {', '.join(unknown)}")

    missing = [r.value for r in Role if r.value not in table]
    if missing:
        raise ConfigurationError(f"Role(s) missing from {name} table: {', '.join(missing)}")

    return {Role(key): tuple(values) for key, values in table.items()}


class AccessPolicy:
    def __init__(self, access: AccessRules):
        nav = _build_table(access.nav, "nav")
        paths = _build_table(access.paths, "paths")

        for role, items in nav.items():
            for item in items:
                prefix = access.nav_paths.get(item)
                if prefix is None:
                    raise ConfigurationError(f"Nav item '{item}' ({role.value}) has no path")
                if prefix not in paths[role]:
                    raise ConfigurationError(
                        f"Nav item '{item}' is visible to {role.value} "
                        f"but path '{prefix}' is not granted"
                    )

        for role, prefixes in paths.items():
            if role is not Role.ADMIN and any(p.startswith(ADMIN_PREFIX) for p in prefixes):
                raise ConfigurationError(f"'{ADMIN_PREFIX}' is admin-exclusive, found in {role.value}")

        self._nav: Mapping[Role, tuple[str, ...]] = MappingProxyType(nav)
        self._paths: Mapping[Role, tuple[str, ...]] = MappingProxyType(paths)
        self._nav_paths: Mapping[str, str] = MappingProxyType(dict(access.nav_paths))
        self._protected = tuple(access.protected_prefixes)

        # Longest first so the first match is the most specific section.
        declared = {p for prefixes in paths.values() for p in prefixes}
        self._sections = tuple(sorted(declared, key=len, reverse=True))

    def _governing_prefix(self, path: str) -> str | None:
        for prefix in self._sections:
            if path.startswith(prefix):
                return prefix
        return None

    def is_path_allowed(self, role: Role | str | None, path: str) -> bool:
        """True iff the role holds the prefix governing `path`. Fail-closed."""
        resolved = _coerce_role(role)
        if resolved is None:
            return False

        if resolved is Role.ADMIN and path.startswith(ADMIN_PREFIX):
            return True

        governing = self._governing_prefix(path)
        if governing is None:
            return False
        return governing in self._paths[resolved]

    def visible_nav_items(self, role: Role | str | None) -> tuple[str, ...]:
        resolved = _coerce_role(role)
        if resolved is None:
            return ()
        return self._nav[resolved]

    def nav_path(self, item: str) -> str:
        return self._nav_paths[item]

    def granted_paths(self, role: Role) -> tuple[str, ...]:
        return self._paths[role]

    def is_public_path(self, path: str) -> bool:
        """Paths outside the protected prefixes need no session."""
        return not any(path.startswith(p) for p in self._protected)
