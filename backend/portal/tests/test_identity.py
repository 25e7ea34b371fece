from portal.core.identity import IdentityResolver
from portal.core.roles import AccessLevel, RoleSet, derive_roles
from portal.core.security import hash_password
from portal.models.employee import Employee
from portal.models.user import User


def _user(db, email, role=None, is_guest=False):
    user = User(email=email, password_hash=hash_password("pw123456"), role=role, is_guest=is_guest)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def test_derive_roles_from_allow_list_is_case_insensitive():
    roles = derive_roles("Boss@Example.com", None, False, False, ["  boss@example.com "])
    assert roles.is_admin
    assert roles.level is AccessLevel.admin


def test_derive_roles_from_role_markers():
    assert derive_roles("a@example.com", "admin", False, False, []).is_admin
    assert derive_roles("a@example.com", "employee", False, False, []).is_employee
    assert not derive_roles("a@example.com", "employee", False, False, []).is_admin


def test_derive_roles_employee_record_is_enough():
    roles = derive_roles("a@example.com", None, False, True, [])
    assert roles == RoleSet(is_admin=False, is_employee=True, is_guest=False)
    assert roles.level is AccessLevel.employee


def test_derive_roles_levels_for_guest_and_customer():
    assert derive_roles("g@guest.local", None, True, False, []).level is AccessLevel.guest
    assert derive_roles("c@example.com", None, False, False, []).level is AccessLevel.customer


def test_empty_email_never_matches_allow_list():
    assert not derive_roles("", None, False, False, ["", " "]).is_admin


def test_resolve_unknown_or_malformed_subject(db, test_settings):
    resolver = IdentityResolver(test_settings)
    assert resolver.resolve(db, "999") is None
    assert resolver.resolve(db, "not-an-id") is None
    assert resolver.resolve(db, "507f1f77bcf86cd799439011") is None
    assert resolver.resolve(db, None) is None
    assert resolver.resolve(db, "-3") is None


def test_allow_list_change_applies_on_next_resolution(db, test_settings):
    user = _user(db, "carol@example.com")
    resolver = IdentityResolver(test_settings)

    assert resolver.resolve(db, str(user.id)).roles.is_admin is False

    test_settings.admin_emails = "Carol@Example.com"
    assert resolver.resolve(db, str(user.id)).roles.is_admin is True

    test_settings.admin_emails = ""
    assert resolver.resolve(db, str(user.id)).roles.is_admin is False


def test_employee_record_deletion_applies_on_next_resolution(db, test_settings):
    user = _user(db, "dave@example.com")
    employee = Employee(user_id=user.id, email=user.email, name="Dave", position="Dev", department="Eng")
    db.add(employee)
    db.commit()
    resolver = IdentityResolver(test_settings)

    identity = resolver.resolve(db, user.id)
    assert identity.roles.is_employee
    assert identity.employee.id == employee.id

    db.delete(employee)
    db.commit()
    identity = resolver.resolve(db, user.id)
    assert not identity.roles.is_employee
    assert identity.employee is None
