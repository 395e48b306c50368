"""Capability flags input schema (admin permissions screen)."""

from pydantic import BaseModel, ConfigDict

from fiscalhub.application.dtos.capability import CapabilityFlags


class CapabilityFlagsUpdate(BaseModel):
    """Full set of flags to save; omitted flags are saved as False."""

    model_config = ConfigDict(extra="forbid")

    user_can_view_clients: bool = False
    user_can_edit_clients: bool = False
    user_can_view_accountants: bool = False
    user_can_edit_accountants: bool = False
    user_can_manage_folders: bool = False
    user_can_delete_files: bool = False
    admin_can_manage_users: bool = False
    admin_can_manage_permissions: bool = False

    def to_flags(self) -> CapabilityFlags:
        return CapabilityFlags(**self.model_dump())
