import pytest
from sqlmodel import Session

from caseflow.core.exception_handlers import (
    ConflictException,
    NotFoundException,
    ValidationException,
)
from caseflow.crud import (
    assign_role,
    create_user,
    get_user,
    get_user_binding,
    get_user_by_email,
    list_users,
)
from caseflow.models import User, UserCreate, UserRoleAssign, UserStageBindingIn
from caseflow.tests.utils.test_data import (
    bind_role,
    bind_user,
    create_test_role,
    create_test_stage,
    create_test_user,
    get_seeded_stage,
)
from caseflow.tests.utils.utils import get_non_existent_id, random_email


def test_create_user_with_stage_bindings(db: Session) -> None:
    stage = get_seeded_stage(db, "counselor")
    user_in = UserCreate(
        email=random_email(),
        full_name="Fatema Counselor",
        role="counselor",
        jamiat_ids=[1],
        jamaat_ids=[10, 11],
        stage_bindings=[UserStageBindingIn(stage_id=stage.id, can_fill_case=True)],
    )

    user = create_user(session=db, user_create=user_in)

    assert user.id is not None
    assert user.jamaat_ids == [10, 11]
    binding = get_user_binding(session=db, stage_id=stage.id, user_id=user.id)
    assert binding is not None
    assert binding.can_fill_case is True


def test_create_user_is_atomic(db: Session) -> None:
    stage = get_seeded_stage(db, "finance_disbursement")
    email = random_email()
    user_in = UserCreate(
        email=email,
        full_name="Wrong Stage",
        role="counselor",
        stage_bindings=[UserStageBindingIn(stage_id=stage.id)],
    )

    with pytest.raises(ValidationException, match="is not assigned to stage"):
        create_user(session=db, user_create=user_in)

    assert get_user_by_email(session=db, email=email) is None


def test_create_user_duplicate_email(db: Session) -> None:
    user = create_test_user(db)

    with pytest.raises(ConflictException, match="already exists"):
        create_user(
            session=db,
            user_create=UserCreate(email=user.email, full_name="Twin", role="counselor"),
        )


def test_create_user_unknown_role(db: Session) -> None:
    with pytest.raises(ValidationException, match="does not exist or is inactive"):
        create_user(
            session=db,
            user_create=UserCreate(
                email=random_email(), full_name="Nobody", role="astronaut"
            ),
        )


def test_create_user_duplicate_stage_bindings(db: Session) -> None:
    stage = get_seeded_stage(db, "counselor")

    with pytest.raises(ValidationException, match="duplicate stage ids"):
        create_user(
            session=db,
            user_create=UserCreate(
                email=random_email(),
                full_name="Double",
                role="counselor",
                stage_bindings=[
                    UserStageBindingIn(stage_id=stage.id),
                    UserStageBindingIn(stage_id=stage.id),
                ],
            ),
        )


def test_assign_role_replaces_bindings(db: Session) -> None:
    role = create_test_role(db)
    old_stage = create_test_stage(db)
    new_stage = create_test_stage(db)
    bind_role(db, new_stage, role)
    user = create_test_user(db, role="counselor")
    bind_user(db, old_stage, user)

    updated = assign_role(
        session=db,
        user_id=user.id,
        role_assign=UserRoleAssign(
            role=role.name,
            stage_bindings=[UserStageBindingIn(stage_id=new_stage.id, can_approve=True)],
        ),
    )

    assert updated.role == role.name
    assert get_user_binding(session=db, stage_id=old_stage.id, user_id=user.id) is None
    assert get_user_binding(session=db, stage_id=new_stage.id, user_id=user.id)


def test_assign_role_without_bindings_keeps_them(db: Session) -> None:
    role = create_test_role(db)
    stage = create_test_stage(db)
    user = create_test_user(db)
    bind_user(db, stage, user)

    assign_role(session=db, user_id=user.id, role_assign=UserRoleAssign(role=role.name))

    assert get_user_binding(session=db, stage_id=stage.id, user_id=user.id)


def test_assign_role_failure_rolls_back(db: Session) -> None:
    role = create_test_role(db)
    stage = create_test_stage(db)
    bind_role(db, stage, create_test_role(db))
    user = create_test_user(db, role="counselor")

    with pytest.raises(ValidationException):
        assign_role(
            session=db,
            user_id=user.id,
            role_assign=UserRoleAssign(
                role=role.name, stage_bindings=[UserStageBindingIn(stage_id=stage.id)]
            ),
        )

    assert get_user(session=db, user_id=user.id).role == "counselor"


def test_get_missing_user(db: Session) -> None:
    with pytest.raises(NotFoundException, match="User not found"):
        get_user(session=db, user_id=get_non_existent_id(db, User))


def test_list_users_by_role(db: Session) -> None:
    role = create_test_role(db)
    active = create_test_user(db, role=role.name)
    inactive = create_test_user(db, role=role.name, is_active=False)

    assert [u.id for u in list_users(session=db, role=role.name)] == [active.id]
    ids = {u.id for u in list_users(session=db, role=role.name, include_inactive=True)}
    assert ids == {active.id, inactive.id}
