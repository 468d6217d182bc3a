# tests/unit/test_job_application_flow.py
import pytest

from panikkar.models.flow_type import FlowType
from panikkar.services.external import ServiceResult
from panikkar.services.external.result import ALREADY_APPLIED, NOT_FOUND
from tests.helpers import (
    button,
    last_button_ids,
    last_list_ids,
    list_reply,
    registered_session,
    sent_anything_containing,
    text,
)

WORKER = {"id": 3, "userId": 7}


def open_job(**overrides):
    job = {
        "id": 42,
        "title": "Shift a fridge",
        "status": "open",
        "posterUserId": 99,
        "payAmount": 600,
        "locationName": "Edappally",
        "latitude": 10.0261,
        "longitude": 76.3125,
        "jobDate": "2030-01-10",
        "jobTime": "09:00",
        "durationHours": 2,
    }
    job.update(overrides)
    return job


@pytest.fixture
def application(router):
    return router.resolve(FlowType.JOB_APPLICATION)


@pytest.fixture
def job_api(api):
    api.list_open_jobs.return_value = [open_job(), open_job(id=43, title="Clean a well")]
    api.get_job.return_value = ServiceResult.success(open_job())
    api.get_worker_by_user.return_value = WORKER
    api.apply_to_job.return_value = ServiceResult.success({"id": 500})
    return api


async def _at_details(application):
    session = registered_session()
    await application.start(session)
    await application.handle(list_reply("view_job:42"), session)
    return session


@pytest.mark.asyncio
async def test_browse_lists_open_jobs_of_other_users(application, job_api, messenger):
    session = registered_session()

    await application.start(session)

    job_api.list_open_jobs.assert_awaited_once_with(exclude_user_id=7, limit=9)
    assert session.current_step == "select_job"
    assert last_list_ids(messenger) == ["view_job:42", "view_job:43"]


@pytest.mark.asyncio
async def test_browse_without_jobs_says_so(application, messenger):
    await application.start(registered_session())

    assert sent_anything_containing(messenger, "No open jobs right now")


@pytest.mark.asyncio
async def test_details_show_the_job_and_its_pin(application, job_api, messenger):
    session = await _at_details(application)

    assert session.current_step == "view_details"
    assert session.temp_data["job_id"] == 42
    messenger.send_location.assert_awaited_once()
    assert sent_anything_containing(messenger, "JOB DETAILS")
    assert last_button_ids(messenger) == ["apply_now", "apply_msg", "skip_job"]


@pytest.mark.asyncio
async def test_quick_apply_skips_the_message(application, job_api, messenger):
    session = await _at_details(application)

    await application.handle(button("apply_now"), session)
    assert session.current_step == "propose_amount"
    assert session.temp_data["worker_id"] == 3

    await application.handle(button("keep_amount"), session)
    assert session.current_step == "confirm_application"

    await application.handle(button("confirm_application"), session)

    job_api.apply_to_job.assert_awaited_once_with(42, 3, {"message": None, "proposedAmount": None})
    assert session.current_step == "complete"
    assert sent_anything_containing(messenger, "Application Sent!")


@pytest.mark.asyncio
async def test_apply_with_message_and_own_rate(application, job_api):
    session = await _at_details(application)

    await application.handle(button("apply_msg"), session)
    assert session.current_step == "enter_message"

    await application.handle(text("I have a pickup van"), session)
    await application.handle(text("₹700"), session)
    await application.handle(button("confirm_application"), session)

    job_api.apply_to_job.assert_awaited_once_with(
        42, 3, {"message": "I have a pickup van", "proposedAmount": 700}
    )


@pytest.mark.asyncio
async def test_edit_amount_from_confirmation(application, job_api):
    session = await _at_details(application)
    await application.handle(button("apply_now"), session)
    await application.handle(text("650"), session)

    await application.handle(button("edit_amount"), session)
    await application.handle(text("800"), session)

    assert session.current_step == "confirm_application"
    assert session.temp_data["proposed_amount"] == 800


@pytest.mark.asyncio
async def test_non_worker_is_sent_to_worker_registration(application, job_api, messenger):
    session = await _at_details(application)
    job_api.get_worker_by_user.return_value = None

    await application.handle(button("apply_now"), session)

    assert session.flow_type == FlowType.MAIN_MENU.value
    assert session.temp_data == {}
    assert last_button_ids(messenger) == ["worker_register", "main_menu"]


@pytest.mark.asyncio
@pytest.mark.parametrize("job,expected", [
    (open_job(status="closed"), "Job Closed"),
    (open_job(posterUserId=7), "can't apply to your own job"),
])
async def test_job_that_cannot_be_applied_to(application, job_api, messenger, job, expected):
    session = await _at_details(application)
    job_api.get_job.return_value = ServiceResult.success(job)

    await application.handle(button("apply_now"), session)

    assert session.flow_type == FlowType.MAIN_MENU.value
    assert sent_anything_containing(messenger, expected)
    job_api.apply_to_job.assert_not_awaited()


@pytest.mark.asyncio
async def test_refused_application_returns_to_menu(application, job_api, messenger):
    job_api.apply_to_job.return_value = ServiceResult.failure(ALREADY_APPLIED)
    session = await _at_details(application)
    await application.handle(button("apply_now"), session)
    await application.handle(button("keep_amount"), session)

    await application.handle(button("confirm_application"), session)

    assert session.flow_type == FlowType.MAIN_MENU.value
    assert sent_anything_containing(messenger, "Already Applied!")
    assert last_button_ids(messenger) == ["browse_jobs", "main_menu"]


@pytest.mark.asyncio
async def test_skip_job_goes_back_to_the_list(application, job_api):
    session = await _at_details(application)

    await application.handle(button("skip_job"), session)

    assert session.flow_type == FlowType.JOB_APPLICATION.value
    assert session.current_step == "select_job"
    assert session.temp_data == {}


@pytest.mark.asyncio
async def test_missing_job_from_alert(application, job_api, messenger):
    job_api.get_job.return_value = ServiceResult.failure(NOT_FOUND)
    session = registered_session()

    await application.start(session, job_id=404)

    assert session.current_step == "view_details"
    assert sent_anything_containing(messenger, "Job Not Found")
    messenger.send_location.assert_not_awaited()
