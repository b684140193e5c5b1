import uuid
from datetime import datetime, timedelta

import pytest

from app.core.exceptions import ValidationError
from app.domain.entities import Book
from app.services.progress import ProgressStateMachine

NOW = datetime(2024, 3, 1, 12, 0, 0)


def make_book(**fields):
    return Book(id=uuid.uuid4(), open_library_id="OL1W", title="Dune", **fields)


@pytest.fixture
def machine():
    return ProgressStateMachine()


def test_first_reading_stamps_started_at(machine):
    book = make_book(page_count=200)
    machine.apply(book, {"reading_status": "reading"}, now=NOW)
    assert book.started_at == NOW

    machine.apply(book, {"reading_status": "want_to_read"}, now=NOW)
    machine.apply(book, {"reading_status": "reading"}, now=NOW + timedelta(days=2))
    assert book.started_at == NOW


def test_first_completion_jumps_to_last_page(machine):
    book = make_book(page_count=320, current_page=40)
    machine.apply(book, {"reading_status": "completed"}, now=NOW)
    assert book.completed_at == NOW
    assert book.current_page == 320
    assert book.progress_percentage == 100


def test_completion_keeps_explicit_page(machine):
    book = make_book(page_count=320)
    machine.apply(book, {"reading_status": "completed", "current_page": 300}, now=NOW)
    assert book.current_page == 300


def test_completion_with_unknown_page_count_leaves_page(machine):
    book = make_book(page_count=0, current_page=12)
    machine.apply(book, {"reading_status": "completed"}, now=NOW)
    assert book.current_page == 12
    assert book.progress_percentage == 0


def test_reentering_completed_keeps_timestamp(machine):
    book = make_book(page_count=100)
    machine.apply(book, {"reading_status": "completed"}, now=NOW)
    machine.apply(book, {"reading_status": "reading", "current_page": 10}, now=NOW)
    machine.apply(book, {"reading_status": "completed"}, now=NOW + timedelta(days=5))
    assert book.completed_at == NOW
    # Not the first completion, so the page is left alone.
    assert book.current_page == 10


def test_any_transition_is_allowed(machine):
    book = make_book(reading_status="completed")
    machine.apply(book, {"reading_status": "want_to_read"}, now=NOW)
    assert book.reading_status == "want_to_read"


@pytest.mark.parametrize(
    "page, message",
    [
        (250, "Current page cannot exceed total page count"),
        (-1, "Current page cannot be negative"),
    ],
)
def test_rejects_out_of_range_pages(machine, page, message):
    book = make_book(page_count=200)
    with pytest.raises(ValidationError, match=message):
        machine.apply(book, {"current_page": page})
    assert book.current_page == 0


def test_page_count_boundary_is_accepted(machine):
    book = make_book(page_count=200)
    machine.apply(book, {"current_page": 200})
    assert book.current_page == 200


def test_merge_leaves_omitted_fields(machine):
    book = make_book(page_count=200, rating=4, notes="keep me", is_favorite=True)
    machine.apply(book, {"review": "Great"})
    assert (book.rating, book.notes, book.is_favorite) == (4, "keep me", True)
    assert book.review == "Great"


def test_rating_bounds_and_clearing(machine):
    book = make_book(rating=3)
    with pytest.raises(ValidationError):
        machine.apply(book, {"rating": 6})
    machine.apply(book, {"rating": None})
    assert book.rating is None


def test_rejects_unknown_status_and_fields(machine):
    book = make_book()
    with pytest.raises(ValidationError):
        machine.apply(book, {"reading_status": "abandoned"})
    with pytest.raises(ValidationError):
        machine.apply(book, {"title": "Renamed"})
    with pytest.raises(ValidationError):
        machine.apply(book, {"current_page": None})
