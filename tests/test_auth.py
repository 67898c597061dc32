from __future__ import annotations

import pytest

from cafe_pos.auth import is_admin_code, resolve_staff, selectable_staff
from cafe_pos.data import default_staff
from cafe_pos.errors import AuthError
from cafe_pos.models import Settings


def test_resolve_staff_by_code():
    assert resolve_staff(default_staff(), "2222").name == "Fatima"


@pytest.mark.parametrize("code", ["9999", "", "12", "12345", "abcd"])
def test_unknown_or_malformed_codes_are_rejected(code):
    with pytest.raises(AuthError):
        resolve_staff(default_staff(), code)


def test_admin_role_is_an_explicit_flag():
    staff = default_staff()
    assert [member.name for member in selectable_staff(staff)] == ["Ahmed", "Fatima"]

    # Changing the admin code does not change who holds the admin role.
    settings = Settings(admin_code="1111")
    assert resolve_staff(staff, "1111").is_admin is False
    assert resolve_staff(staff, "0000").is_admin is True
    assert is_admin_code(settings, "1111")
    assert not is_admin_code(settings, "0000")
