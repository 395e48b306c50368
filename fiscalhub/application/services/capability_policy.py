"""CapabilityPolicy: single entry point for 'may this role do this action?'.

Decisions combine the effective role with the process-wide CapabilityFlags:

- admin: every action.
- accountant: a fixed subset, regardless of flags (resources are further
  scoped to linked clients by the services that list them).
- user: only actions whose flag in USER_ACTION_FLAGS is True; actions with no
  flag are admin-only. Missing flags are False.
- none: nothing.

This is a UX fast path; the backend remains the authority and may still reject.
"""

from __future__ import annotations

from fiscalhub.application.dtos.capability import CapabilityFlags
from fiscalhub.domain.enums import Action, EffectiveRole
from fiscalhub.domain.exceptions import AuthorizationException

USER_ACTION_FLAGS: dict[Action, str | None] = {
    Action.VIEW_CLIENTS: "user_can_view_clients",
    Action.EDIT_CLIENTS: "user_can_edit_clients",
    Action.VIEW_ACCOUNTANTS: "user_can_view_accountants",
    Action.EDIT_ACCOUNTANTS: "user_can_edit_accountants",
    Action.MANAGE_FOLDERS: "user_can_manage_folders",
    Action.UPLOAD_FILES: "user_can_manage_folders",
    Action.DELETE_FILES: "user_can_delete_files",
    Action.VIEW_DOCUMENTS: "user_can_view_clients",
    Action.DOWNLOAD_FILES: "user_can_view_clients",
    Action.MANAGE_ASSIGNMENTS: None,
    Action.MANAGE_USERS: None,
    Action.MANAGE_PERMISSIONS: None,
}

ACCOUNTANT_ACTIONS: frozenset[Action] = frozenset(
    {
        Action.VIEW_CLIENTS,
        Action.VIEW_DOCUMENTS,
        Action.DOWNLOAD_FILES,
    }
)


def can(
    action: Action,
    role: EffectiveRole,
    flags: CapabilityFlags | None = None,
) -> bool:
    """Return True if role may perform action under flags (fail-closed)."""
    if role is EffectiveRole.ADMIN:
        return True
    if role is EffectiveRole.ACCOUNTANT:
        return action in ACCOUNTANT_ACTIONS
    if role is EffectiveRole.USER:
        flag = USER_ACTION_FLAGS.get(action)
        if flag is None or flags is None:
            return False
        return flags.is_enabled(flag)
    return False


class CapabilityPolicy:
    """Policy bound to one role + flags snapshot (e.g. the current session)."""

    def __init__(self, role: EffectiveRole, flags: CapabilityFlags | None = None) -> None:
        self.role = role
        self.flags = flags or CapabilityFlags()

    def can(self, action: Action) -> bool:
        return can(action, self.role, self.flags)

    def require(self, action: Action) -> None:
        """Raise AuthorizationException if the role may not perform action."""
        if not self.can(action):
            raise AuthorizationException(action=action.value, role=self.role.value)

    def allowed_actions(self) -> frozenset[Action]:
        return frozenset(a for a in Action if self.can(a))
