"""RoleResolver: raw role rows -> one effective role.

Precedence is a total order over the set of roles held (admin > user >
accountant); no rows gives EffectiveRole.NONE. Duplicate or overlapping rows
for the same identity are tolerated and do not change the outcome.
"""

from __future__ import annotations

from collections.abc import Iterable

from fiscalhub.application.dtos.identity import RoleAssignment
from fiscalhub.domain.enums import EffectiveRole, RoleName

# Highest first.
ROLE_PRECEDENCE: tuple[RoleName, ...] = (
    RoleName.ADMIN,
    RoleName.USER,
    RoleName.ACCOUNTANT,
)


class RoleResolver:
    """Pure resolver; no network or side effects."""

    @staticmethod
    def resolve(assignments: Iterable[RoleAssignment | RoleName | str]) -> EffectiveRole:
        """Return the highest-precedence role held, or NONE.

        Accepts RoleAssignment rows, RoleName members or raw role strings.
        Unknown role strings are ignored.
        """
        held: set[RoleName] = set()
        for item in assignments:
            role = item.role if isinstance(item, RoleAssignment) else item
            try:
                held.add(RoleName(role))
            except ValueError:
                continue
        for role in ROLE_PRECEDENCE:
            if role in held:
                return EffectiveRole(role.value)
        return EffectiveRole.NONE


def resolve_effective_role(
    assignments: Iterable[RoleAssignment | RoleName | str],
) -> EffectiveRole:
    """Module-level shortcut for RoleResolver.resolve."""
    return RoleResolver.resolve(assignments)
