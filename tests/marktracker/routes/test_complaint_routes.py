import pytest
from pydantic import ValidationError

from marktracker.core.exceptions import NotFound
from marktracker.models.complaint import Complaint
from marktracker.routes.complaint_routes import (
    CreateComplaintRequest,
    create_complaint,
    list_complaints,
    resolve_complaint,
)


def test_create_complaint_request_rejects_blank_message() -> None:
    with pytest.raises(ValidationError):
        CreateComplaintRequest(message='   ')


def test_create_complaint_stores_student_name_and_default_status(db, make_user, claims_for) -> None:
    student = make_user('sam', 'student', full_name='Sam Student', roll_number='R1')

    complaint = create_complaint(CreateComplaintRequest(message=' Wrong Math mark '), claims=claims_for(student), db=db)

    assert complaint.student_id == student.id
    assert complaint.student_name == 'Sam Student'
    assert complaint.message == 'Wrong Math mark'
    assert complaint.status == 'Submitted'
    assert complaint.created_at is not None


def test_create_complaint_falls_back_to_username(db, make_user, claims_for) -> None:
    student = make_user('sam', 'student', roll_number='R1')

    complaint = create_complaint(CreateComplaintRequest(message='Missing mark'), claims=claims_for(student), db=db)

    assert complaint.student_name == 'sam'


def test_list_complaints_scopes_students_to_their_own(db, make_user, claims_for) -> None:
    sam = make_user('sam', 'student', roll_number='R1')
    sue = make_user('sue', 'student', roll_number='R2')
    teacher = make_user('tina', 'teacher')
    admin = make_user('root', 'admin')
    create_complaint(CreateComplaintRequest(message='from sam'), claims=claims_for(sam), db=db)
    create_complaint(CreateComplaintRequest(message='from sue'), claims=claims_for(sue), db=db)

    assert [c.message for c in list_complaints(claims=claims_for(sam), db=db)] == ['from sam']
    assert [c.message for c in list_complaints(claims=claims_for(teacher), db=db)] == ['from sam', 'from sue']
    assert len(list_complaints(claims=claims_for(admin), db=db)) == 2


@pytest.mark.parametrize('resolver_role', ['teacher', 'admin'])
def test_resolve_complaint_is_idempotent(db, make_user, claims_for, resolver_role: str) -> None:
    student = make_user('sam', 'student', roll_number='R1')
    resolver = make_user('staff', resolver_role)
    complaint = create_complaint(CreateComplaintRequest(message='help'), claims=claims_for(student), db=db)

    first = resolve_complaint(complaint.id, claims=claims_for(resolver), db=db)
    assert first.status == 'Resolved'

    second = resolve_complaint(complaint.id, claims=claims_for(resolver), db=db)
    assert second.status == 'Resolved'
    assert second.message == 'help'
    assert db.query(Complaint).count() == 1


def test_resolve_complaint_returns_not_found_when_missing(db, make_user, claims_for) -> None:
    teacher = make_user('tina', 'teacher')

    with pytest.raises(NotFound) as exception_info:
        resolve_complaint(999, claims=claims_for(teacher), db=db)

    assert exception_info.value.status_code == 404
    assert exception_info.value.message == 'Complaint not found.'
