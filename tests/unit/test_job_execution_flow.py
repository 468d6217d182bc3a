# tests/unit/test_job_execution_flow.py
import pytest

from panikkar.models.flow_type import FlowType
from panikkar.services.external import PanikkarApiError, ServiceResult
from panikkar.services.external.result import WRONG_STATUS
from tests.helpers import (
    button,
    image,
    last_button_ids,
    registered_session,
    sent_anything_containing,
    text,
)

WORKER = {"id": 3, "userId": 7}


def assigned_job(**overrides):
    job = {
        "id": 42,
        "title": "Shift a fridge",
        "status": "assigned",
        "posterUserId": 99,
        "assignedWorkerId": 3,
    }
    job.update(overrides)
    return job


@pytest.fixture
def execution(router):
    return router.resolve(FlowType.JOB_EXECUTION)


@pytest.fixture
def worker_api(api):
    api.get_worker_by_user.return_value = WORKER
    api.get_job.return_value = ServiceResult.success(assigned_job())
    api.get_active_job.return_value = assigned_job()
    api.store_media.side_effect = [
        {"path": "jobs/arrival/a.jpg", "url": "https://cdn.example/jobs/arrival/a.jpg"},
        {"path": "jobs/completion/c.jpg", "url": "https://cdn.example/jobs/completion/c.jpg"},
    ]
    api.record_arrival.return_value = ServiceResult.success(assigned_job(status="in_progress"))
    api.report_completion.return_value = ServiceResult.success(assigned_job(status="work_done"))
    return api


async def _arrived(execution):
    session = registered_session()
    await execution.start(session, job_id=42)
    await execution.handle(image("media-1"), session)
    await execution.handle(button("confirm_arrival"), session)
    return session


@pytest.mark.asyncio
async def test_arrival_then_completion_with_photos(execution, worker_api, messenger):
    session = registered_session()

    await execution.start(session, job_id=42)
    assert session.current_step == "arrival_photo"
    assert sent_anything_containing(messenger, "Arrival Verification")

    await execution.handle(image("media-1"), session)
    assert session.current_step == "confirm_arrival"
    assert session.temp_data["arrival_photo_path"] == "jobs/arrival/a.jpg"
    worker_api.store_media.assert_awaited_with("media-1", "jobs/arrival")

    await execution.handle(button("confirm_arrival"), session)
    worker_api.record_arrival.assert_awaited_once_with(42, 3, "jobs/arrival/a.jpg")
    assert session.current_step == "work_in_progress"
    assert session.temp_data["arrival_photo_path"] is None
    assert session.temp_data["arrival_recorded"] is True

    await execution.handle(button("work_done"), session)
    assert session.current_step == "completion_photo"

    await execution.handle(image("media-2"), session)
    assert session.current_step == "confirm_completion"

    await execution.handle(button("confirm_completion"), session)
    worker_api.report_completion.assert_awaited_once_with(42, 3, "jobs/completion/c.jpg")
    assert session.current_step == "complete"
    assert session.temp_data == {}
    assert sent_anything_containing(messenger, "Great work!")


@pytest.mark.asyncio
async def test_photos_can_be_skipped(execution, worker_api):
    session = registered_session()
    await execution.start(session, job_id=42)

    await execution.handle(button("skip_arrival_photo"), session)
    assert session.current_step == "confirm_arrival"
    await execution.handle(button("confirm_arrival"), session)
    await execution.handle(button("work_done"), session)
    await execution.handle(text("skip"), session)
    await execution.handle(button("confirm_completion"), session)

    worker_api.record_arrival.assert_awaited_once_with(42, 3, None)
    worker_api.report_completion.assert_awaited_once_with(42, 3, None)
    worker_api.store_media.assert_not_awaited()


@pytest.mark.asyncio
async def test_arrival_is_checkpointed(execution, worker_api, store):
    session = await _arrived(execution)

    saved = await store.load(session.phone)
    assert saved.current_step == "work_in_progress"
    assert saved.temp_data["arrival_recorded"] is True


@pytest.mark.asyncio
async def test_job_in_progress_opens_on_work_in_progress(execution, worker_api):
    worker_api.get_job.return_value = ServiceResult.success(assigned_job(status="in_progress"))
    session = registered_session()

    await execution.start(session, job_id=42)

    assert session.current_step == "work_in_progress"
    assert session.temp_data["arrival_recorded"] is True


@pytest.mark.asyncio
async def test_completion_entry_opens_on_completion_photo(execution, worker_api, messenger):
    worker_api.get_job.return_value = ServiceResult.success(assigned_job(status="in_progress"))
    session = registered_session()

    await execution.start(session, job_id=42, stage="completion")

    assert session.current_step == "completion_photo"
    assert last_button_ids(messenger) == ["skip_completion_photo"]


@pytest.mark.asyncio
async def test_menu_entry_uses_the_active_job(execution, worker_api):
    session = registered_session()

    await execution.start(session)

    worker_api.get_active_job.assert_awaited_once_with(3)
    assert session.current_step == "arrival_photo"
    assert session.temp_data["job_id"] == 42


@pytest.mark.asyncio
async def test_no_active_job(execution, worker_api, messenger):
    worker_api.get_active_job.return_value = None
    session = registered_session()

    await execution.start(session)

    assert session.flow_type == FlowType.MAIN_MENU.value
    assert sent_anything_containing(messenger, "No active job")


@pytest.mark.asyncio
async def test_job_of_another_worker_is_refused(execution, worker_api, messenger):
    worker_api.get_job.return_value = ServiceResult.success(assigned_job(assignedWorkerId=8))
    session = registered_session(flow_type="job_post", current_step="enter_title")

    await execution.start(session, job_id=42)

    assert session.flow_type == FlowType.MAIN_MENU.value
    assert sent_anything_containing(messenger, "assigned to another worker")


@pytest.mark.asyncio
async def test_user_without_worker_profile_is_sent_to_registration(execution, worker_api, messenger):
    worker_api.get_worker_by_user.return_value = None

    await execution.start(registered_session(), job_id=42)

    assert last_button_ids(messenger) == ["worker_register", "main_menu"]


@pytest.mark.asyncio
async def test_refused_arrival_deletes_the_photo(execution, worker_api, messenger):
    worker_api.record_arrival.return_value = ServiceResult.failure(WRONG_STATUS)
    session = registered_session()
    await execution.start(session, job_id=42)
    await execution.handle(image("media-1"), session)

    await execution.handle(button("confirm_arrival"), session)

    worker_api.delete_media.assert_awaited_once_with("jobs/arrival/a.jpg")
    assert session.flow_type == FlowType.MAIN_MENU.value
    assert sent_anything_containing(messenger, "already finished or was cancelled")


@pytest.mark.asyncio
async def test_timeout_deletes_unreported_completion_photo(execution, worker_api):
    session = await _arrived(execution)
    await execution.handle(button("work_done"), session)
    await execution.handle(image("media-2"), session)

    await execution.handle_timeout(session)

    worker_api.delete_media.assert_awaited_once_with("jobs/completion/c.jpg")


@pytest.mark.asyncio
async def test_timeout_keeps_photo_attached_to_arrival(execution, worker_api):
    session = await _arrived(execution)

    await execution.handle_timeout(session)

    worker_api.delete_media.assert_not_awaited()


@pytest.mark.asyncio
async def test_cleanup_failure_is_logged_not_raised(execution, worker_api):
    worker_api.delete_media.side_effect = PanikkarApiError("down", 503)
    session = registered_session()
    await execution.start(session, job_id=42)
    await execution.handle(image("media-1"), session)

    await execution.handle_timeout(session)

    worker_api.delete_media.assert_awaited_once_with("jobs/arrival/a.jpg")


@pytest.mark.asyncio
async def test_completion_reported_once(execution, worker_api):
    session = await _arrived(execution)
    await execution.handle(button("work_done"), session)
    await execution.handle(button("skip_completion_photo"), session)

    await execution.handle(button("confirm_completion"), session)
    await execution.handle(button("confirm_completion"), session)

    worker_api.report_completion.assert_awaited_once()
    assert session.flow_type == FlowType.MAIN_MENU.value
