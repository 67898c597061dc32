"""Access-code resolution for the login and admin prompts."""

from __future__ import annotations

import logging
from typing import Iterable

from cafe_pos.config import ACCESS_CODE_LENGTH
from cafe_pos.errors import AuthError
from cafe_pos.models import Settings, Staff

logger = logging.getLogger(__name__)


def is_well_formed_code(code: str) -> bool:
    return len(code) == ACCESS_CODE_LENGTH and code.isdigit()


def resolve_staff(staff: Iterable[Staff], code: str) -> Staff:
    """Return the staff member owning ``code`` or raise AuthError."""
    if not is_well_formed_code(code):
        raise AuthError(f"Access code must be {ACCESS_CODE_LENGTH} digits")
    for member in staff:
        if member.code == code:
            return member
    logger.info("login_rejected reason=unknown_code")
    raise AuthError("Incorrect access code. Please try again.")


def is_admin_code(settings: Settings, code: str) -> bool:
    return is_well_formed_code(code) and code == settings.admin_code


def selectable_staff(staff: Iterable[Staff]) -> list[Staff]:
    """Staff offered for quick login; admins must type their code."""
    return [member for member in staff if not member.is_admin]
