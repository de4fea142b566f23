"""Role gate: which users an account may view or manage.

Pure functions over user-like objects (anything with `id` and
`tipo_usuario`). The scope of each role lives in one dispatch table keyed by
`UserRole`; the table is checked for completeness at import so a new role
cannot be added without deciding its scope. Unknown or missing roles get the
self-only scope.
"""

from typing import Callable, Dict, Iterable, List, Optional

from database.models import UserRole

ScopeRule = Callable[[object, object], bool]


def parse_role(value) -> Optional[UserRole]:
    """Coerce a stored role (enum or string) to `UserRole`, or None if unknown."""
    if isinstance(value, UserRole):
        return value
    if value is None:
        return None
    try:
        return UserRole(str(value).strip().lower())
    except ValueError:
        return None


def _is_self(viewer, candidate) -> bool:
    return candidate.id == viewer.id


def _everyone(viewer, candidate) -> bool:
    return True


def _self_clients_and_dependents(viewer, candidate) -> bool:
    if _is_self(viewer, candidate):
        return True
    return parse_role(candidate.tipo_usuario) in (UserRole.CLIENTE, UserRole.DEPENDENTE)


_SCOPE_BY_ROLE: Dict[UserRole, ScopeRule] = {
    UserRole.GESTOR: _everyone,
    UserRole.SOCIO: _self_clients_and_dependents,
    UserRole.CLIENTE: _is_self,
    UserRole.DEPENDENTE: _is_self,
}

_missing = set(UserRole) - set(_SCOPE_BY_ROLE)
if _missing:
    raise RuntimeError(f"Role gate has no scope for: {sorted(r.value for r in _missing)}")


def scope_for(role) -> ScopeRule:
    """Return the visibility rule for a role; unknown roles see only themselves."""
    parsed = parse_role(role)
    if parsed is None:
        return _is_self
    return _SCOPE_BY_ROLE[parsed]


def can_view(viewer, target) -> bool:
    """True when `viewer` may select `target` as the viewed user."""
    if viewer is None or target is None:
        return False
    return scope_for(viewer.tipo_usuario)(viewer, target)


def can_manage(viewer, target) -> bool:
    """True when `viewer` may act on another user's data (not its own)."""
    return can_view(viewer, target) and not _is_self(viewer, target)


def visible_users(viewer, candidates: Iterable) -> List:
    """Users `viewer` may view, self first, each at most once.

    The viewer is always included even when absent from `candidates`.
    """
    rule = scope_for(viewer.tipo_usuario)
    result = [viewer]
    seen = {viewer.id}
    for candidate in candidates:
        if candidate.id in seen:
            continue
        if rule(viewer, candidate):
            result.append(candidate)
            seen.add(candidate.id)
    return result


def visible_user_ids(viewer, candidates: Iterable) -> set:
    return {user.id for user in visible_users(viewer, candidates)}


def can_manage_dependents(role) -> bool:
    """Roles that may create dependents for themselves."""
    return parse_role(role) in (UserRole.GESTOR, UserRole.SOCIO)
