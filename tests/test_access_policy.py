from types import SimpleNamespace

import pytest

from utils.access import ROLE_SCOPES, AccessPolicy
from utils.errors import AuthorizationError


def test_every_role_is_enumerated():
    assert ROLE_SCOPES == {
        "admin": "all",
        "kepala_sekolah": "school",
        "guru": "all",
        "staff": "all",
        "murid": "all",
    }


def test_admin_passes_everything(db_session, campus, make_item, policy_for):
    item = make_item(campus.room_c)
    policy = policy_for(campus.admin)
    assert policy.can_access_school(campus.school_b)
    assert policy.can_access_room(campus.room_c)
    assert policy.can_access_item(item.id)
    assert policy.visible_school_id() is None


def test_head_of_school_is_scoped(db_session, campus, make_item, policy_for):
    own = make_item(campus.room_a)
    other = make_item(campus.room_c)
    policy = policy_for(campus.kepala)

    assert policy.can_access_school(campus.school_a)
    assert not policy.can_access_school(campus.school_b)
    assert policy.can_access_room(campus.room_b)
    assert not policy.can_access_room(campus.room_c)
    assert policy.can_access_item(own.id)
    assert not policy.can_access_item(other.id)
    assert not policy.can_access_room(9999)
    assert policy.visible_school_id() == campus.school_a

    with pytest.raises(AuthorizationError) as excinfo:
        policy.require_item(other.id)
    assert excinfo.value.status_code == 403


def test_head_of_school_without_school_sees_nothing(db_session, campus):
    user = SimpleNamespace(id=77, role="kepala_sekolah", school_id=None)
    policy = AccessPolicy(db_session, user)
    assert not policy.can_access_school(campus.school_a)
    assert not policy.can_access_room(campus.room_a)
    assert policy.visible_school_id() == -1


@pytest.mark.parametrize("role", ["guru", "staff", "murid"])
def test_other_roles_are_unscoped(db_session, campus, role):
    user = SimpleNamespace(id=5, role=role, school_id=campus.school_a)
    policy = AccessPolicy(db_session, user)
    assert policy.can_access_school(campus.school_b)
    assert policy.can_access_room(campus.room_c)
    with pytest.raises(AuthorizationError):
        policy.require_admin()


@pytest.mark.parametrize(
    "user",
    [None, SimpleNamespace(id=9, role="janitor", school_id=None), SimpleNamespace(id=9, role=None)],
)
def test_unknown_or_missing_user_is_denied(db_session, campus, user):
    policy = AccessPolicy(db_session, user)
    assert not policy.can_access_school(campus.school_a)
    assert not policy.can_access_room(campus.room_a)
    assert not policy.can_access_item(1)
    with pytest.raises(AuthorizationError):
        policy.require_room(campus.room_a)
