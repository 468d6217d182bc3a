# tests/unit/test_job_selection_flow.py
import pytest

from panikkar.models.flow_type import FlowType
from panikkar.services.external import ServiceResult
from panikkar.services.external.result import ALREADY_SELECTED, NOT_FOUND
from tests.helpers import (
    button,
    last_button_ids,
    last_list_ids,
    list_reply,
    registered_session,
    sent_anything_containing,
)


def own_job(**overrides):
    job = {
        "id": 42,
        "title": "Shift a fridge",
        "status": "open",
        "posterUserId": 7,
        "payAmount": 600,
        "locationName": "Edappally",
        "jobDate": "2030-01-10",
        "applicationsCount": 2,
    }
    job.update(overrides)
    return job


def application(**overrides):
    data = {
        "id": 500,
        "jobPostId": 42,
        "status": "pending",
        "workerName": "Suresh",
        "workerRating": 4.6,
        "workerJobsCompleted": 12,
        "proposedAmount": 700,
        "message": "I have a pickup van",
    }
    data.update(overrides)
    return data


@pytest.fixture
def selection(router):
    return router.resolve(FlowType.JOB_SELECTION)


@pytest.fixture
def poster_api(api):
    api.list_jobs_with_applications.return_value = [own_job()]
    api.get_job.return_value = ServiceResult.success(own_job())
    api.list_applications.return_value = [application(), application(id=501, workerName="Anil", proposedAmount=None)]
    api.get_application.return_value = ServiceResult.success(application())
    api.select_application.return_value = ServiceResult.success({"id": 42, "status": "assigned", "workerPhone": "919800000001"})
    api.reject_application.return_value = True
    return api


async def _at_applicant(selection):
    session = registered_session()
    await selection.start(session, job_id=42)
    await selection.handle(list_reply("select_worker:500"), session)
    return session


@pytest.mark.asyncio
async def test_poster_picks_job_then_applicant(selection, poster_api, messenger):
    session = registered_session()

    await selection.start(session)
    assert session.current_step == "select_job"
    assert last_list_ids(messenger) == ["review_job:42"]
    poster_api.list_jobs_with_applications.assert_awaited_once_with(7)

    await selection.handle(list_reply("review_job:42"), session)
    assert session.current_step == "view_applications"
    assert session.temp_data == {"job_id": 42, "job_title": "Shift a fridge", "job_pay": 600}
    assert last_list_ids(messenger) == ["select_worker:500", "select_worker:501"]

    await selection.handle(list_reply("select_worker:500"), session)
    assert session.current_step == "view_applicant"
    assert session.temp_data["worker_name"] == "Suresh"
    assert sent_anything_containing(messenger, "I have a pickup van")
    assert last_button_ids(messenger) == ["select_this_worker", "reject_this", "back_to_list"]


@pytest.mark.asyncio
async def test_alert_with_job_id_opens_on_applications(selection, poster_api):
    session = registered_session(flow_type="job_post", current_step="enter_title", temp_data={"title": "x"})

    await selection.start(session, job_id=42)

    assert session.flow_type == FlowType.JOB_SELECTION.value
    assert session.current_step == "view_applications"
    assert session.temp_data["job_id"] == 42
    poster_api.list_applications.assert_awaited_once_with(42)


@pytest.mark.asyncio
async def test_other_users_job_is_refused(selection, poster_api, messenger):
    poster_api.get_job.return_value = ServiceResult.success(own_job(posterUserId=99))
    session = registered_session()

    await selection.start(session, job_id=42)

    assert session.flow_type == FlowType.MAIN_MENU.value
    assert sent_anything_containing(messenger, "Only the person who posted a job")
    poster_api.list_applications.assert_not_awaited()


@pytest.mark.asyncio
async def test_assigned_job_says_worker_already_chosen(selection, poster_api, messenger):
    poster_api.get_job.return_value = ServiceResult.success(own_job(status="assigned", assignedWorkerId=3))

    await selection.start(registered_session(), job_id=42)

    assert sent_anything_containing(messenger, "Worker Already Chosen")


@pytest.mark.asyncio
async def test_application_of_another_job_is_invalid(selection, poster_api, messenger):
    poster_api.get_application.return_value = ServiceResult.success(application(jobPostId=43))
    session = registered_session()
    await selection.start(session, job_id=42)

    await selection.handle(list_reply("select_worker:500"), session)

    assert session.current_step == "view_applications"
    assert "application_id" not in session.temp_data
    assert sent_anything_containing(messenger, "no longer open")


@pytest.mark.asyncio
async def test_confirm_selects_once_and_completes(selection, poster_api, messenger):
    session = await _at_applicant(selection)

    await selection.handle(button("select_this_worker"), session)
    assert session.current_step == "confirm_selection"
    assert last_button_ids(messenger) == ["confirm_select", "back_to_list", "cancel"]

    await selection.handle(button("confirm_select"), session)
    await selection.handle(button("confirm_select"), session)

    poster_api.select_application.assert_awaited_once_with(500)
    assert sent_anything_containing(messenger, "Worker Selected!")
    assert sent_anything_containing(messenger, "+919800000001")
    assert session.flow_type == FlowType.MAIN_MENU.value


@pytest.mark.asyncio
async def test_completion_is_checkpointed(selection, poster_api, store):
    session = await _at_applicant(selection)
    await selection.handle(button("select_this_worker"), session)

    await selection.handle(button("confirm_select"), session)

    saved = await store.load(session.phone)
    assert saved.flow_type == FlowType.JOB_SELECTION.value
    assert saved.current_step == "selected"


@pytest.mark.asyncio
async def test_selection_refused_when_job_already_taken(selection, poster_api, messenger):
    poster_api.select_application.return_value = ServiceResult.failure(ALREADY_SELECTED)
    session = await _at_applicant(selection)
    await selection.handle(button("select_this_worker"), session)

    await selection.handle(button("confirm_select"), session)

    assert session.flow_type == FlowType.MAIN_MENU.value
    assert sent_anything_containing(messenger, "Worker Already Chosen")


@pytest.mark.asyncio
async def test_reject_declines_and_returns_to_the_list(selection, poster_api, messenger):
    session = await _at_applicant(selection)

    await selection.handle(button("reject_this"), session)

    poster_api.reject_application.assert_awaited_once_with(500)
    assert sent_anything_containing(messenger, "Suresh was told")
    assert session.current_step == "view_applications"
    assert session.temp_data == {"job_id": 42, "job_title": "Shift a fridge", "job_pay": 600}


@pytest.mark.asyncio
async def test_back_returns_to_the_list(selection, poster_api):
    session = await _at_applicant(selection)

    await selection.handle(button("back_to_list"), session)

    assert session.current_step == "view_applications"
    assert "application_id" not in session.temp_data


@pytest.mark.asyncio
async def test_no_jobs_with_applicants(selection, poster_api, messenger):
    poster_api.list_jobs_with_applications.return_value = []

    await selection.start(registered_session())

    assert sent_anything_containing(messenger, "No applications yet")
    assert last_button_ids(messenger) == ["job_post", "main_menu"]


@pytest.mark.asyncio
async def test_missing_job_from_list(selection, poster_api, messenger):
    poster_api.get_job.return_value = ServiceResult.failure(NOT_FOUND)
    session = registered_session()
    await selection.start(session)

    await selection.handle(list_reply("review_job:42"), session)

    assert session.flow_type == FlowType.MAIN_MENU.value
    assert sent_anything_containing(messenger, "Job Not Found")
