import pytest
from sqlmodel import Session

from caseflow.core.exception_handlers import NotFoundException, ValidationException
from caseflow.core.workflow.assignment import (
    list_available_counselors,
    list_counselor_stages,
    serves_area,
    validate_counselor,
)
from caseflow.models import Case, User
from caseflow.tests.utils.test_data import (
    bind_user,
    create_test_case,
    create_test_stage,
    create_test_user,
    get_seeded_stage,
)
from caseflow.tests.utils.utils import get_non_existent_id


def test_serves_area() -> None:
    anywhere = User(email="a@example.com", role="counselor")
    local = User(
        email="b@example.com", role="counselor", jamiat_ids=[1], jamaat_ids=[10]
    )

    assert serves_area(anywhere, 1, 10)
    assert serves_area(local, 1, 10)
    assert serves_area(local, None, None)
    assert not serves_area(local, 2, None)
    assert serves_area(local, 1, 11)
    assert serves_area(local, 2, 10)
    assert not serves_area(local, 2, 11)


def test_counselors_from_role_binding_filtered_by_area(db: Session) -> None:
    stage = get_seeded_stage(db, "counselor")
    case = create_test_case(db, stage, jamiat_id=1, jamaat_id=10)
    zahra = create_test_user(db, full_name="zahra", jamiat_ids=[1])
    aisha = create_test_user(db, full_name="Aisha", jamiat_ids=[1], jamaat_ids=[10])
    create_test_user(db, full_name="Burhan", jamiat_ids=[2])
    create_test_user(db, full_name="Husain", jamiat_ids=[1], is_active=False)
    create_test_user(db, role="admin", full_name="Admin")

    counselors = list_available_counselors(db, case_id=case.id)

    assert [c.id for c in counselors] == [aisha.id, zahra.id]
    assert counselors[0].full_name == "Aisha"


def test_counselor_matching_jamiat_only_is_available(db: Session) -> None:
    stage = get_seeded_stage(db, "counselor")
    case = create_test_case(db, stage, jamiat_id=1, jamaat_id=5)
    counselor = create_test_user(
        db, full_name="Jamiat Only", jamiat_ids=[1], jamaat_ids=[7]
    )
    create_test_user(db, full_name="Elsewhere", jamiat_ids=[2], jamaat_ids=[7])

    counselors = list_available_counselors(db, case_id=case.id)

    assert [c.id for c in counselors] == [counselor.id]

def test_explicit_user_bindings_take_precedence(db: Session) -> None:
    stage = get_seeded_stage(db, "counselor")
    case = create_test_case(db, stage)
    bound = create_test_user(db, full_name="Bound")
    create_test_user(db, full_name="Unbound")
    bind_user(db, stage, bound, can_fill_case=True)

    counselors = list_available_counselors(db, case_id=case.id)

    assert [c.id for c in counselors] == [bound.id]


def test_case_without_area_is_unfiltered(db: Session) -> None:
    stage = get_seeded_stage(db, "counselor")
    case = create_test_case(db, stage)
    north = create_test_user(db, full_name="North", jamiat_ids=[1])
    south = create_test_user(db, full_name="South", jamiat_ids=[2])

    ids = {c.id for c in list_available_counselors(db, case_id=case.id)}

    assert ids == {north.id, south.id}


def test_area_filter_without_case(db: Session) -> None:
    north = create_test_user(db, full_name="North", jamaat_ids=[10])
    create_test_user(db, full_name="South", jamaat_ids=[20])

    counselors = list_available_counselors(db, jamaat_id=10)

    assert [c.id for c in counselors] == [north.id]


def test_no_counselor_stage_returns_empty(db: Session) -> None:
    stage = create_test_stage(db, stage_key="intake")
    case = create_test_case(db, stage, jamiat_id=1)
    create_test_user(db, jamiat_ids=[1])

    assert list_counselor_stages(db, stage.case_type_id) == []
    assert list_available_counselors(db, case_id=case.id) == []


def test_unknown_case(db: Session) -> None:
    with pytest.raises(NotFoundException, match="Case not found"):
        list_available_counselors(db, case_id=get_non_existent_id(db, Case))


def test_validate_counselor(db: Session) -> None:
    counselor = create_test_user(db)
    admin = create_test_user(db, role="admin")

    assert validate_counselor(db, counselor.id).id == counselor.id
    with pytest.raises(ValidationException, match="counselor role"):
        validate_counselor(db, admin.id)
    with pytest.raises(NotFoundException, match="Counselor not found"):
        validate_counselor(db, get_non_existent_id(db, User))
