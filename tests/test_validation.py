"""Validation rules: presence, format, scoped uniqueness, cross-field checks."""

from datetime import date, datetime
from types import SimpleNamespace

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from academy.core import services
from academy.core.exceptions import ValidationError
from academy.core.models import Assignment, Course, Lesson, Reading, School, Term, User
from academy.core.validation import BASE, BLANK, TAKEN, Errors, humanize, is_blank


def test_humanize_drops_id_suffix() -> None:
    assert humanize("course_code") == "Course code"
    assert humanize("lesson_id") == "Lesson"
    assert humanize("order_number") == "Order number"
    assert humanize("name") == "Name"


def test_is_blank() -> None:
    assert is_blank(None)
    assert is_blank("")
    assert is_blank("   ")
    assert not is_blank("x")
    assert not is_blank(0)
    assert not is_blank(False)


def test_errors_full_messages_and_lookup() -> None:
    errors = Errors()
    assert not errors
    errors.add("name", BLANK)
    errors.add("course_code", TAKEN)
    errors.add(BASE, "Something else went wrong")

    assert errors
    assert len(errors) == 3
    assert "name" in errors
    assert "url" not in errors
    assert errors["course_code"] == [TAKEN]
    assert errors["url"] == []
    assert errors.full_messages == [
        "Name can't be blank",
        "Course code has already been taken",
        "Something else went wrong",
    ]
    assert errors.to_dict() == {"name": [BLANK], "course_code": [TAKEN], BASE: ["Something else went wrong"]}


@pytest.mark.asyncio
async def test_lesson_has_a_name(db_session: AsyncSession) -> None:
    result = await services.create(db_session, Lesson, {})
    assert not result.ok
    assert result.kind == "validation"
    assert "Name can't be blank" in result.messages


@pytest.mark.asyncio
async def test_reading_reports_every_missing_field(db_session: AsyncSession) -> None:
    """All rules run; nothing short-circuits."""
    result = await services.create(db_session, Reading, {})
    assert not result.ok
    assert "Order number can't be blank" in result.messages
    assert "Lesson can't be blank" in result.messages
    assert "Url can't be blank" in result.messages
    assert not await services.exists(db_session, Reading)


@pytest.mark.asyncio
async def test_reading_url_format(db_session: AsyncSession) -> None:
    result = await services.create(db_session, Reading, {"url": "www.resistanceisfutile.com"})
    assert not result.ok
    assert "Url is invalid" in result.messages

    http = await services.create(db_session, Reading, {"order_number": 1, "lesson_id": 1, "url": "http://borg.com"})
    assert http.ok
    https = await services.create(db_session, "reading", {"order_number": 1, "lesson_id": 1, "url": "https://borg.com"})
    assert https.ok


@pytest.mark.asyncio
async def test_course_has_a_name(db_session: AsyncSession) -> None:
    result = await services.create(db_session, Course, {})
    assert "Name can't be blank" in result.messages


@pytest.mark.asyncio
async def test_course_code_is_unique_per_term(db_session: AsyncSession, academy: SimpleNamespace) -> None:
    first = await services.create(
        db_session, Course, {"name": "Communications", "course_code": "ncc1371", "term": academy.term}
    )
    assert first.ok

    second = await services.create(
        db_session, Course, {"name": "Exochemistry", "course_code": "ncc1371", "term": academy.term}
    )
    assert not second.ok
    assert "Course code has already been taken" in second.messages
    assert second.errors["course_code"] == [TAKEN]

    other_term = await services.create(
        db_session, Course, {"name": "Exochemistry", "course_code": "ncc1371", "term": academy.term_two}
    )
    assert other_term.ok


@pytest.mark.asyncio
async def test_course_code_format(db_session: AsyncSession, academy: SimpleNamespace) -> None:
    result = await services.create(
        db_session, Course, {"name": "Interspecies Protocol", "course_code": "borg", "term": academy.term}
    )
    assert not result.ok
    assert "Course code is invalid" in result.messages

    ok = await services.create(
        db_session, Course, {"name": "Interspecies Protocol", "course_code": "ncc1701", "term": academy.term_two}
    )
    assert ok.ok


@pytest.mark.asyncio
async def test_school_has_a_name(db_session: AsyncSession) -> None:
    result = await services.create(db_session, School, {})
    assert result.errors["name"] == [BLANK]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fields, missing",
    [
        ({}, "Name can't be blank"),
        ({"name": "Winter"}, "Starts on can't be blank"),
        ({"name": "Spring", "starts_on": "2017-02-16"}, "Ends on can't be blank"),
        ({"name": "Summer", "starts_on": date(2017, 4, 1), "ends_on": "2017-04-29"}, "School can't be blank"),
    ],
)
async def test_term_required_fields(db_session: AsyncSession, fields: dict, missing: str) -> None:
    result = await services.create(db_session, Term, fields)
    assert not result.ok
    assert missing in result.messages


@pytest.mark.asyncio
async def test_user_required_fields(db_session: AsyncSession) -> None:
    result = await services.create(db_session, User, {"first_name": "Bobby"})
    assert not result.ok
    assert "First name" not in " ".join(result.messages)
    assert "Last name can't be blank" in result.messages
    assert "Email can't be blank" in result.messages
    assert "Photo url can't be blank" in result.messages


@pytest.mark.asyncio
async def test_user_email_is_unique(db_session: AsyncSession) -> None:
    fields = {
        "first_name": "Bobby",
        "last_name": "Tables",
        "email": "dropallthetables@dropitlikeitshot.com",
        "photo_url": "https://xkcd.com/327/",
    }
    first = await services.create(db_session, User, fields)
    assert first.ok

    second = await services.create(db_session, User, {**fields, "first_name": "Fred", "last_name": "Dunston"})
    assert not second.ok
    assert "Email has already been taken" in second.messages
    assert await services.find_unique(db_session, User, email=fields["email"]) is first.value


@pytest.mark.asyncio
async def test_user_email_pattern(db_session: AsyncSession) -> None:
    bad = await services.create(
        db_session,
        User,
        {"first_name": "Jean Luc", "middle_name": "Luc", "last_name": "Picard",
         "email": "capt_jean_luc_picardoftheussenterprise", "photo_url": "https://example.com/p.jpg"},
    )
    assert bad.errors["email"] == ["is invalid"]

    good = await services.create(
        db_session,
        User,
        {"first_name": "Jean", "middle_name": "Luc", "last_name": "Picard",
         "email": "CaptJeanLucPicard@Enterprise.com",
         "photo_url": "https://terrygotham.files.wordpress.com/2014/01/dh4og59.jpg"},
    )
    assert good.ok
    assert good.unwrap().middle_name == "Luc"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "photo_url, valid",
    [
        ("vivaleresistance.png", False),
        ("wickedfastball.jpg", False),
        ("ftp://www.ds9.com/saycheese.png", False),
        ("http://www.ds9.com/employees/pictures/saycheese.png", True),
        ("https://www.ds9.com/employees/pictures/wickedfastball.jpg", True),
    ],
)
async def test_user_photo_url_begins_with_http(db_session: AsyncSession, photo_url: str, valid: bool) -> None:
    result = await services.create(
        db_session,
        User,
        {"first_name": "Benjamin", "last_name": "Sisko", "email": "baseballislife@ds9.com", "photo_url": photo_url},
    )
    assert result.ok is valid
    if not valid:
        assert "Photo url is invalid" in result.messages


@pytest.mark.asyncio
async def test_assignment_required_fields(db_session: AsyncSession, academy: SimpleNamespace) -> None:
    nameless = await services.create(db_session, Assignment, {"name": ""})
    assert "Name can't be blank" in nameless.messages
    assert "Course can't be blank" in nameless.messages
    assert "Percent of grade can't be blank" in nameless.messages

    named = await services.create(
        db_session,
        Assignment,
        {"name": "Star Trekkin' across the Universe", "course_id": academy.course.id, "percent_of_grade": 0.95},
    )
    assert named.ok
    assert named.value.name == "Star Trekkin' across the Universe"


@pytest.mark.asyncio
async def test_assignment_name_is_unique_within_a_course(db_session: AsyncSession, academy: SimpleNamespace) -> None:
    fields = {"name": "Avoiding Transporter Buffer Overruns", "course_id": academy.course.id, "percent_of_grade": 0.30}
    assert (await services.create(db_session, Assignment, fields)).ok

    duplicate = await services.create(db_session, Assignment, {**fields, "percent_of_grade": 0.45})
    assert not duplicate.ok
    assert "Name has already been taken" in duplicate.messages

    elsewhere = await services.create(db_session, Assignment, {**fields, "course_id": academy.course_two.id})
    assert elsewhere.ok


@pytest.mark.asyncio
async def test_assignment_due_date_is_after_active_date(db_session: AsyncSession, academy: SimpleNamespace) -> None:
    result = await services.create(
        db_session,
        Assignment,
        {"name": "Late", "course": academy.course, "percent_of_grade": 0.1,
         "active_at": date.today(), "due_at": "1988-05-10"},
    )
    assert not result.ok
    assert "Due at date cannot be before active at date." in result.messages

    same_day = await services.create(
        db_session,
        Assignment,
        {"name": "Same day", "course": academy.course, "percent_of_grade": 0.1,
         "active_at": "2017-05-15", "due_at": "2017-05-15"},
    )
    assert same_day.ok


@pytest.mark.asyncio
async def test_uncoercible_and_unknown_fields(db_session: AsyncSession, academy: SimpleNamespace) -> None:
    result = await services.create(
        db_session,
        Term,
        {"name": "Winter", "starts_on": "not a date", "ends_on": "2017-04-29",
         "school": academy.school, "colour": "blue"},
    )
    assert not result.ok
    assert result.errors["starts_on"] == ["is invalid"]
    assert "Colour is not a known attribute" in result.messages
    assert "Starts on can't be blank" not in result.messages


@pytest.mark.asyncio
async def test_unsaved_association_is_rejected(db_session: AsyncSession) -> None:
    result = await services.create(db_session, Course, {"name": "Orphan", "term": Term(name="Never saved")})
    assert not result.ok
    assert "Term must be saved first" in result.messages


@pytest.mark.asyncio
async def test_unwrap_raises_validation_error(db_session: AsyncSession) -> None:
    result = await services.create(db_session, School, {"name": "   "})
    with pytest.raises(ValidationError) as excinfo:
        result.unwrap()
    assert excinfo.value.status_code == 400
    assert excinfo.value.messages == ["Name can't be blank"]


@pytest.mark.asyncio
async def test_offset_dates_are_stored_as_utc(db_session: AsyncSession, academy: SimpleNamespace) -> None:
    result = await services.create(
        db_session,
        Assignment,
        {
            "name": "Temporal Mechanics",
            "course_id": academy.course.id,
            "percent_of_grade": 0.1,
            "active_at": "2020-01-01",
            "due_at": "2020-01-02T00:00:00+02:00",
        },
    )
    assert result.ok
    assert result.value.due_at == datetime(2020, 1, 1, 22, 0)
    assert result.value.due_at.tzinfo is None

    other = await services.create(
        db_session,
        Assignment,
        {
            "name": "Temporal Paradoxes",
            "course_id": academy.course.id,
            "percent_of_grade": 0.1,
            "active_at": "2020-01-02",
            "due_at": "2020-01-01T23:00:00Z",
        },
    )
    assert "Due at date cannot be before active at date." in other.messages


@pytest.mark.asyncio
async def test_update_with_offset_date_compares_against_stored_dates(
    db_session: AsyncSession, academy: SimpleNamespace
) -> None:
    rejected = await services.update(db_session, academy.assignment, {"due_at": "1900-01-02T00:00:00+02:00"})
    assert "Due at date cannot be before active at date." in rejected.messages

    accepted = await services.update(db_session, academy.assignment, {"due_at": "2020-01-02T00:00:00+02:00"})
    assert accepted.ok
    assert academy.assignment.due_at == datetime(2020, 1, 1, 22, 0)
