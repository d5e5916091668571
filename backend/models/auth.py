"""
Authentication models.

Dependencies: pydantic
System role: Authenticated caller identity
"""

import uuid
from enum import Enum

from backend.models.common import CamelModel


class Role(str, Enum):
    """Organisation member roles."""

    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class Principal(CamelModel):
    """Claims carried by an access token."""

    user_id: uuid.UUID
    email: str
    organisation_id: uuid.UUID
    role: Role
