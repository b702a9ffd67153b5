"""
Tests for the onboarding state machine end to end against the scripted backend.
"""

from __future__ import annotations

import asyncio
import dataclasses

import pytest

from app.application.exceptions import (
    InvalidStepError,
    OnboardingBusyError,
    OnboardingValidationError,
    RemoteOperationError,
)
from app.application.use_cases.basic_registration import BasicRegistrationStep
from app.application.use_cases.category_selection import CategorySelectionStep
from app.application.use_cases.onboarding_controller import OnboardingController
from app.application.use_cases.service_entry import ServiceEntryOrchestrator
from app.domain.entities.file_upload import FileUpload
from app.domain.entities.onboarding_session import OnboardingSession, OnboardingStep
from app.domain.entities.provider import ProviderDocuments
from app.domain.entities.remote_outcome import Ambiguous, Failed
from app.domain.entities.schedule import ScheduleValidationError, Weekday
from app.domain.entities.service_entry import SubmissionStatus
from app.infrastructure.auth.local_auth_session import LocalAuthSession


class FailingAuthSession(LocalAuthSession):
    async def establish_session(self, identity):
        raise ConnectionError("auth service unavailable")


def _fill_draft(controller: OnboardingController, category_id: int, title: str = "Deep clean") -> None:
    controller.update_draft(category_id=category_id, title=title, price=1200.0, duration_minutes=90)
    controller.add_schedule_entry("09:00", "17:00")


def test_basic_info_moves_to_next_step(controller, basic_info, documents):
    identity = asyncio.run(controller.submit_basic_info(basic_info, documents))

    assert identity.id > 0
    assert controller.step == OnboardingStep.BASIC_INFO_SUBMITTED
    assert controller.session.identity == identity


def test_basic_info_validation_reports_everything_missing(controller, backend, basic_info):
    info = dataclasses.replace(basic_info, about=" ", confirm_password="different", password="abc")

    with pytest.raises(OnboardingValidationError) as excinfo:
        asyncio.run(controller.submit_basic_info(info, ProviderDocuments(image_logo=FileUpload("l.png", b"x"))))

    problems = excinfo.value.problems
    assert "about is required" in problems
    assert "Passwords do not match" in problems
    assert "Password must be at least 6 characters" in problems
    assert "bir_id_front document is required" in problems
    assert "image_logo document is required" not in problems
    assert controller.step == OnboardingStep.UNREGISTERED
    assert backend.called("register_provider") == 0


def test_basic_info_remote_failure_stays_unregistered(controller, backend, basic_info, documents):
    backend.queue("register_provider", Failed(reason="Email already registered", status_code=409))

    with pytest.raises(RemoteOperationError) as excinfo:
        asyncio.run(controller.submit_basic_info(basic_info, documents))

    assert str(excinfo.value) == "Email already registered"
    assert controller.step == OnboardingStep.UNREGISTERED
    assert controller.session.in_flight is None


def test_unreadable_registration_is_not_treated_as_success(controller, backend, basic_info, documents):
    backend.queue("register_provider", Ambiguous(reason="truncated", status_code=201))

    with pytest.raises(RemoteOperationError):
        asyncio.run(controller.submit_basic_info(basic_info, documents))
    assert controller.session.identity is None


def test_toggle_and_submit_categories(controller, basic_info, documents):
    asyncio.run(controller.submit_basic_info(basic_info, documents))

    controller.toggle_category(1)
    controller.toggle_category(3)
    assert controller.toggle_category(3) == frozenset({1})

    registration = asyncio.run(controller.submit_categories())

    assert registration.confirmed_ids == frozenset({1})
    assert controller.step == OnboardingStep.SERVICE_ENTRY_LOOP
    assert controller.session.remaining_categories == [1]


def test_empty_selection_is_rejected_before_network(controller, backend, basic_info, documents):
    asyncio.run(controller.submit_basic_info(basic_info, documents))

    with pytest.raises(OnboardingValidationError):
        asyncio.run(controller.submit_categories([]))
    assert backend.called("register_categories") == 0
    assert controller.step == OnboardingStep.BASIC_INFO_SUBMITTED


def test_category_failure_keeps_selection_for_retry(controller, backend, basic_info, documents):
    asyncio.run(controller.submit_basic_info(basic_info, documents))
    backend.queue("register_categories", Failed(reason="HTTP error! status: 503", status_code=503))

    with pytest.raises(RemoteOperationError):
        asyncio.run(controller.submit_categories([1, 2]))

    assert controller.step == OnboardingStep.CATEGORIES_SELECTED
    assert controller.session.selection == {1, 2}

    asyncio.run(controller.submit_categories())
    assert controller.step == OnboardingStep.SERVICE_ENTRY_LOOP


def test_categories_cannot_change_after_service_loop_starts(in_service_loop):
    with pytest.raises(InvalidStepError):
        in_service_loop.toggle_category(3)
    with pytest.raises(InvalidStepError):
        asyncio.run(in_service_loop.submit_categories([3]))


def test_available_categories(controller):
    categories = asyncio.run(controller.available_categories())

    assert [c.name for c in categories][:2] == ["Cleaning", "Plumbing"]


def test_submitting_a_service_marks_its_category_and_resets_draft(in_service_loop):
    _fill_draft(in_service_loop, 1)

    result = asyncio.run(in_service_loop.submit_current_draft())

    session = in_service_loop.session
    assert result.status == SubmissionStatus.COMPLETED
    assert session.tracker.completed == frozenset({1})
    assert session.remaining_categories == [2]
    assert session.draft.title == ""
    assert session.draft.schedule.is_empty()
    assert session.services == [result.service]
    assert session.can_add_service and session.can_finish


def test_draft_validation_blocks_submission(in_service_loop, backend):
    in_service_loop.update_draft(category_id=1, title="")

    with pytest.raises(OnboardingValidationError) as excinfo:
        asyncio.run(in_service_loop.submit_current_draft())

    assert "title is required" in excinfo.value.problems
    assert "at least one schedule day is required" in excinfo.value.problems
    assert backend.called("create_service") == 0


def test_completed_category_cannot_be_submitted_twice(in_service_loop):
    _fill_draft(in_service_loop, 1)
    asyncio.run(in_service_loop.submit_current_draft())

    _fill_draft(in_service_loop, 1, title="Another")
    with pytest.raises(OnboardingValidationError):
        asyncio.run(in_service_loop.submit_current_draft())


def test_unknown_draft_field_is_rejected(in_service_loop):
    with pytest.raises(OnboardingValidationError):
        in_service_loop.update_draft(colour="blue")


def test_schedule_edits_go_through_the_draft(in_service_loop):
    first = in_service_loop.add_schedule_entry("09:00", "12:00")
    second = in_service_loop.add_schedule_entry("13:00", "15:00")

    assert first.weekday == Weekday.MONDAY
    assert second.weekday == Weekday.TUESDAY
    with pytest.raises(ScheduleValidationError):
        in_service_loop.update_schedule_entry(second.entry_id, "weekday", "Monday")

    assert in_service_loop.remove_schedule_entry(first.entry_id)
    photo_id = in_service_loop.attach_photo(FileUpload("a.jpg", b"a"))
    assert in_service_loop.remove_photo(photo_id)
    assert len(in_service_loop.draft.schedule) == 1


def test_create_failure_keeps_draft_and_tracker(in_service_loop, backend):
    _fill_draft(in_service_loop, 1)
    backend.queue("create_service", Failed(reason="Service title required", status_code=400))

    with pytest.raises(RemoteOperationError):
        asyncio.run(in_service_loop.submit_current_draft())

    assert in_service_loop.session.tracker.is_empty()
    assert in_service_loop.draft.title == "Deep clean"
    assert backend.called("upload_service_photos") == 0
    assert backend.called("create_service_schedules") == 0


def test_photo_failure_does_not_block_completion(in_service_loop, backend):
    _fill_draft(in_service_loop, 1)
    in_service_loop.attach_photo(FileUpload("a.jpg", b"a", "image/jpeg"))
    backend.queue("upload_service_photos", Failed(reason="Upload service down", status_code=503))

    result = asyncio.run(in_service_loop.submit_current_draft())

    assert result.status == SubmissionStatus.COMPLETED
    assert 1 in in_service_loop.session.tracker
    assert result.notices


def test_ambiguous_submission_waits_for_acknowledgement(in_service_loop, backend):
    """Scenario: undecodable create-service body skips photos and schedules."""
    _fill_draft(in_service_loop, 1)
    in_service_loop.attach_photo(FileUpload("a.jpg", b"a", "image/jpeg"))
    backend.queue("create_service", Ambiguous(reason="truncated", status_code=201))

    pending = asyncio.run(in_service_loop.submit_current_draft())

    session = in_service_loop.session
    assert pending.status == SubmissionStatus.AWAITING_ACKNOWLEDGEMENT
    assert session.pending == pending
    assert session.tracker.is_empty()
    assert not session.can_add_service and not session.can_finish
    with pytest.raises(InvalidStepError):
        asyncio.run(in_service_loop.submit_current_draft())
    with pytest.raises(InvalidStepError):
        in_service_loop.update_draft(title="changed")
    with pytest.raises(InvalidStepError):
        asyncio.run(in_service_loop.finish())

    result = asyncio.run(in_service_loop.acknowledge_ambiguous(accept=True))

    assert result.status == SubmissionStatus.COMPLETED
    assert result.provisional
    assert session.pending is None
    assert session.tracker.completed == frozenset({1})
    assert session.services[0].confirmed is False
    assert backend.called("upload_service_photos") == 0
    assert backend.called("create_service_schedules") == 0


def test_declined_ambiguous_submission_keeps_draft(in_service_loop, backend):
    _fill_draft(in_service_loop, 2, title="Pipe repair")
    backend.queue("create_service", Ambiguous(reason="truncated", status_code=201))
    asyncio.run(in_service_loop.submit_current_draft())

    result = asyncio.run(in_service_loop.acknowledge_ambiguous(accept=False))

    assert result.status == SubmissionStatus.DECLINED
    assert in_service_loop.session.pending is None
    assert in_service_loop.session.tracker.is_empty()
    assert in_service_loop.draft.title == "Pipe repair"


def test_acknowledge_without_pending_is_rejected(in_service_loop):
    with pytest.raises(InvalidStepError):
        asyncio.run(in_service_loop.acknowledge_ambiguous(accept=True))


def test_finish_requires_at_least_one_service(in_service_loop):
    with pytest.raises(InvalidStepError):
        asyncio.run(in_service_loop.finish())
    assert in_service_loop.step == OnboardingStep.SERVICE_ENTRY_LOOP


def test_finish_with_partial_completion(in_service_loop, auth_state, navigator):
    """Scenario: categories {1, 2}, a service for 1 only, then finish."""
    published = []
    auth_state.subscribe(published.append)
    _fill_draft(in_service_loop, 1)
    asyncio.run(in_service_loop.submit_current_draft())

    summary = asyncio.run(in_service_loop.finish())

    assert in_service_loop.step == OnboardingStep.COMPLETED
    assert summary.completed_categories == frozenset({1})
    assert summary.skipped_categories == [2]
    assert summary.services_set_up == 1
    assert summary.home_path == "/provider/home"
    assert summary.auth_session.access_token.startswith(f"provider_{summary.identity.id}_")
    assert not summary.auth_session.fallback
    assert published == [summary.auth_session]
    assert auth_state.current() == summary.auth_session
    assert navigator.last_destination == "/provider/home"


def test_finish_after_every_category(in_service_loop):
    for category_id in (1, 2):
        _fill_draft(in_service_loop, category_id)
        asyncio.run(in_service_loop.submit_current_draft())

    assert not in_service_loop.session.can_add_service
    summary = asyncio.run(in_service_loop.finish())

    assert summary.skipped_categories == []
    assert summary.services_set_up == 2


def test_finish_falls_back_when_session_cannot_be_established(backend, auth_state, navigator, basic_info, documents):
    controller = OnboardingController(
        session=OnboardingSession(session_id="fallback"),
        registration=BasicRegistrationStep(backend),
        categories=CategorySelectionStep(backend),
        service_entry=ServiceEntryOrchestrator(backend),
        auth=FailingAuthSession(),
        auth_state=auth_state,
        navigator=navigator,
    )
    identity = asyncio.run(controller.submit_basic_info(basic_info, documents))
    asyncio.run(controller.submit_categories([1]))
    _fill_draft(controller, 1)
    asyncio.run(controller.submit_current_draft())

    summary = asyncio.run(controller.finish())

    assert summary.auth_session.fallback
    assert summary.auth_session.access_token == f"provider_{identity.id}_fallback"
    assert controller.step == OnboardingStep.COMPLETED


def test_second_action_while_in_flight_is_rejected(in_service_loop):
    _fill_draft(in_service_loop, 1)
    in_service_loop.session.in_flight = "submit_current_draft"

    with pytest.raises(OnboardingBusyError):
        asyncio.run(in_service_loop.submit_current_draft())
    assert in_service_loop.session.tracker.is_empty()


def test_draft_cannot_change_while_it_is_being_submitted(in_service_loop, backend):
    """Edits during create-service would change what the service is created with."""
    _fill_draft(in_service_loop, 1)
    in_service_loop.add_schedule_entry("13:00", "15:00")
    photo_id = in_service_loop.attach_photo(FileUpload("a.jpg", b"a"))
    entry_id = next(iter(in_service_loop.draft.schedule)).entry_id

    async def go():
        gate = backend.hold("create_service")
        submission = asyncio.create_task(in_service_loop.submit_current_draft())
        while not backend.called("create_service"):
            await asyncio.sleep(0)

        for edit in (
            lambda: in_service_loop.remove_schedule_entry(entry_id),
            lambda: in_service_loop.add_schedule_entry("18:00", "19:00"),
            lambda: in_service_loop.update_schedule_entry(entry_id, "end", "16:00"),
            lambda: in_service_loop.update_draft(title="Other"),
            lambda: in_service_loop.remove_photo(photo_id),
            lambda: in_service_loop.reset_draft(),
        ):
            with pytest.raises(OnboardingBusyError):
                edit()

        gate.set()
        return await submission

    result = asyncio.run(go())

    assert result.status == SubmissionStatus.COMPLETED
    assert result.service.title == "Deep clean"
    assert len(result.schedules.created) == 2
    assert result.photos.attempted == 1
    assert in_service_loop.session.in_flight is None
    in_service_loop.update_draft(title="Next service")


def test_selection_is_frozen_while_categories_are_registered(controller, backend, basic_info, documents):
    asyncio.run(controller.submit_basic_info(basic_info, documents))
    controller.toggle_category(1)
    controller.toggle_category(2)

    async def go():
        gate = backend.hold("register_categories")
        submission = asyncio.create_task(controller.submit_categories())
        while not backend.called("register_categories"):
            await asyncio.sleep(0)

        with pytest.raises(OnboardingBusyError):
            controller.toggle_category(1)
        with pytest.raises(OnboardingBusyError):
            await controller.submit_categories([3])

        gate.set()
        return await submission

    registration = asyncio.run(go())

    assert registration.confirmed_ids == frozenset({1, 2})
    assert controller.session.selection == {1, 2}
    assert controller.session.tracker.selection == frozenset({1, 2})
    assert controller.session.remaining_categories == [1, 2]


def test_required_draft_fields_cannot_be_nulled(in_service_loop):
    _fill_draft(in_service_loop, 1)

    with pytest.raises(OnboardingValidationError) as excinfo:
        in_service_loop.update_draft(is_active=None, title=None)

    assert excinfo.value.problems == ["title cannot be null", "is_active cannot be null"]
    assert in_service_loop.draft.is_active is True
    assert in_service_loop.draft.title == "Deep clean"
    in_service_loop.update_draft(description=None, price=None)
    assert in_service_loop.draft.price is None


def test_no_transition_backwards(in_service_loop, basic_info, documents):
    with pytest.raises(InvalidStepError):
        asyncio.run(in_service_loop.submit_basic_info(basic_info, documents))
