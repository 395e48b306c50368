"""Input schemas (pydantic) for mutations."""

from fiscalhub.schemas.accountant import AccountantCreate, AccountantUpdate
from fiscalhub.schemas.capability import CapabilityFlagsUpdate
from fiscalhub.schemas.client import ClientCreate, ClientUpdate
from fiscalhub.schemas.folder import FileRename, FileUpload, FolderCreate, FolderRename
from fiscalhub.schemas.validation import error_message, parse_input

__all__ = [
    "AccountantCreate",
    "AccountantUpdate",
    "CapabilityFlagsUpdate",
    "ClientCreate",
    "ClientUpdate",
    "FileRename",
    "FileUpload",
    "FolderCreate",
    "FolderRename",
    "error_message",
    "parse_input",
]
