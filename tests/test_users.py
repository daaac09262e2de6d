import pytest

import models
from routers.facility_schemas import UserPayload
from routers.users import create_user, delete_user, list_users, update_user
from utils.errors import AuthorizationError, ConflictError, ValidationError


def test_create_user_defaults_to_guru(db_session, campus, policy_for):
    user = create_user(
        UserPayload(name="Rina", no_induk="G-002", phone="0812-3456 789"),
        db=db_session,
        policy=policy_for(campus.admin),
    )
    assert user["role"] == "guru"
    assert user["phone"] == "08123456789"
    assert "password_hash" not in user


def test_duplicate_identity_is_a_conflict(db_session, campus, policy_for):
    admin = policy_for(campus.admin)
    with pytest.raises(ConflictError):
        create_user(
            UserPayload(name="Dup", no_induk="K-001", phone="0899999"), db=db_session, policy=admin
        )
    with pytest.raises(ConflictError):
        create_user(
            UserPayload(name="Dup", no_induk="X-1", phone="0800003"), db=db_session, policy=admin
        )


@pytest.mark.parametrize(
    "payload",
    [
        UserPayload(no_induk="X-1", phone="0811"),
        UserPayload(name="X", phone="0811"),
        UserPayload(name="X", no_induk="X-1"),
        UserPayload(name="X", no_induk="X-1", phone="0811", role="principal"),
        UserPayload(name="X", no_induk="X-1", phone="0811", role="kepala_sekolah"),
        UserPayload(name="X", no_induk="X-1", phone="0811", school_id=999),
    ],
)
def test_user_validation(db_session, campus, policy_for, payload):
    with pytest.raises(ValidationError):
        create_user(payload, db=db_session, policy=policy_for(campus.admin))


def test_user_management_is_admin_only(db_session, campus, policy_for):
    for user in (campus.kepala, campus.guru):
        with pytest.raises(AuthorizationError):
            list_users(db=db_session, policy=policy_for(user))
        with pytest.raises(AuthorizationError):
            delete_user(campus.admin.id, db=db_session, policy=policy_for(user))


def test_update_user_keeps_own_identity(db_session, campus, policy_for):
    updated = update_user(
        campus.guru.id,
        UserPayload(
            name="Guru Cendekia",
            no_induk="G-001",
            phone="0800003",
            role="staff",
            school_id=campus.school_b,
        ),
        db=db_session,
        policy=policy_for(campus.admin),
    )
    assert updated["role"] == "staff"
    assert updated["school_name"] == "SMP Cendekia"


def test_user_cannot_delete_self(db_session, campus, policy_for):
    admin = policy_for(campus.admin)
    with pytest.raises(ConflictError):
        delete_user(campus.admin.id, db=db_session, policy=admin)

    delete_user(campus.guru.id, db=db_session, policy=admin)
    assert db_session.get(models.User, campus.guru.id) is None
