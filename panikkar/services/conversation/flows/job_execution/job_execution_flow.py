from enum import Enum
from typing import Dict, List, Optional, Tuple

from panikkar.models.flow_type import FlowType
from panikkar.models.incoming import IncomingMessage, MessageKind
from panikkar.models.session import ConversationSession
from panikkar.schemas.execution_schema import ExecutionDraft
from panikkar.services.conversation import messages
from panikkar.services.external import PanikkarApiError
from panikkar.services.external.result import NOT_ASSIGNED, NOT_FOUND, WRONG_STATUS
from ..base_flow import BaseFlow
from ..step import SELECTION, StepResult, StepSpec

ARRIVAL_STAGE = "arrival"
COMPLETION_STAGE = "completion"

ASSIGNED_STATUS = "assigned"
IN_PROGRESS_STATUS = "in_progress"

PHOTO_FOLDERS = {
    "arrival_photo_path": "jobs/arrival",
    "completion_photo_path": "jobs/completion",
}

NOT_A_WORKER = "not_a_worker"
NO_ACTIVE_JOB = "no_active_job"

REJECTIONS = {
    NOT_FOUND: "❌ *Job Not Found*\n\nThis job is no longer available.",
    NOT_ASSIGNED: "❌ This job is assigned to another worker.",
    WRONG_STATUS: "ℹ️ *Nothing to do here*\n\nThis job is already finished or was cancelled.",
    NOT_A_WORKER: "👷 *Register as a worker first!*\n\nOnly workers can report job progress.",
    NO_ACTIVE_JOB: "📭 *No active job*\n\nYou have no job in progress. Let's find you one!",
}


class JobExecutionStep(str, Enum):
    ARRIVAL_PHOTO = "arrival_photo"
    CONFIRM_ARRIVAL = "confirm_arrival"
    WORK_IN_PROGRESS = "work_in_progress"
    COMPLETION_PHOTO = "completion_photo"
    CONFIRM_COMPLETION = "confirm_completion"
    COMPLETE = "complete"


class JobExecutionFlow(BaseFlow):
    """
    Responsibility: the assigned worker reports arrival and completion.

    arrival photo (optional) -> confirm arrival -> work in progress
    -> completion photo (optional) -> confirm completion -> complete

    Entry comes from the selection alert (start_job:<id>), the reminder
    after work (complete_job:<id>) or the menu, which looks up the worker's
    active job. A job already in progress opens on "work in progress".

    Photos go to storage as soon as they arrive and are handed to the
    backend with the report. Photos of an abandoned or refused report are
    deleted again.
    """

    flow_type = FlowType.JOB_EXECUTION
    steps = JobExecutionStep
    first_step = JobExecutionStep.ARRIVAL_PHOTO
    terminal_step = JobExecutionStep.COMPLETE
    draft_model = ExecutionDraft

    def step_table(self):
        return {
            JobExecutionStep.ARRIVAL_PHOTO: StepSpec(
                handler=self._handle_arrival_photo,
                prompt=self._prompt_arrival_photo,
                expects=(MessageKind.IMAGE,),
                next=JobExecutionStep.CONFIRM_ARRIVAL,
                optional=True,
                skip_ids=("skip", "skip_arrival_photo"),
            ),
            JobExecutionStep.CONFIRM_ARRIVAL: StepSpec(
                handler=self._handle_confirm_arrival,
                prompt=self._prompt_confirm_arrival,
                expects=SELECTION,
                next=JobExecutionStep.WORK_IN_PROGRESS,
            ),
            JobExecutionStep.WORK_IN_PROGRESS: StepSpec(
                handler=self._handle_work_done,
                prompt=self._prompt_work_in_progress,
                expects=SELECTION,
                next=JobExecutionStep.COMPLETION_PHOTO,
            ),
            JobExecutionStep.COMPLETION_PHOTO: StepSpec(
                handler=self._handle_completion_photo,
                prompt=self._prompt_completion_photo,
                expects=(MessageKind.IMAGE,),
                next=JobExecutionStep.CONFIRM_COMPLETION,
                optional=True,
                skip_ids=("skip", "skip_completion_photo"),
            ),
            JobExecutionStep.CONFIRM_COMPLETION: StepSpec(
                handler=self._handle_confirm_completion,
                prompt=self._prompt_confirm_completion,
                expects=SELECTION,
                next=JobExecutionStep.COMPLETE,
            ),
        }

    async def start(
        self,
        session: ConversationSession,
        job_id: Optional[int] = None,
        stage: str = ARRIVAL_STAGE,
        **entry,
    ) -> None:
        try:
            job, worker_id, reason = await self._load_assigned_job(session, job_id)
        except PanikkarApiError as e:
            await self._report_service_failure(session, e)
            return

        if reason is not None:
            self.logger.info(f"[{self.tag}] Job {job_id} not startable for {session.user_id}: {reason}")
            self.sessions.reset_to_main_menu(session)
            await self.send_buttons(session, REJECTIONS[reason], self._refusal_buttons(reason))
            return

        await super().start(session, job=job, worker_id=worker_id, stage=stage)

    def entry_step(
        self,
        session: ConversationSession,
        job: Optional[Dict] = None,
        worker_id: Optional[int] = None,
        stage: str = ARRIVAL_STAGE,
        **entry,
    ) -> Enum:
        if job is None:
            return self.first_step

        arrived = job.get("status") == IN_PROGRESS_STATUS
        self.temp.merge(session, {
            "job_id": job["id"],
            "job_title": job.get("title"),
            "worker_id": worker_id,
            "arrival_recorded": arrived,
        })
        if stage == COMPLETION_STAGE:
            return JobExecutionStep.COMPLETION_PHOTO
        if arrived:
            return JobExecutionStep.WORK_IN_PROGRESS
        return JobExecutionStep.ARRIVAL_PHOTO

    async def handle_timeout(self, session: ConversationSession) -> None:
        """Removes proof photos that never reached the backend."""
        await self._discard_photos(session)

    # ==================== HANDLERS ====================

    async def _handle_arrival_photo(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        return await self._store_photo(message, session, "arrival_photo_path")

    async def _handle_confirm_arrival(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        if message.action != "confirm_arrival":
            return StepResult.invalid("Please tap I've Arrived when you reach the job.")

        draft = self.draft(session)
        result = await self.api.record_arrival(draft.job_id, draft.worker_id, draft.arrival_photo_path)
        if result.is_failure():
            return await self._refuse_report(session, result.reason)

        # the photo now belongs to the arrival record
        return StepResult.advance({"arrival_photo_path": None, "arrival_recorded": True}, checkpoint=True)

    async def _handle_work_done(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        if message.action != "work_done":
            return StepResult.invalid("Tap Work Done when you finish the job.")
        return StepResult.advance()

    async def _handle_completion_photo(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        return await self._store_photo(message, session, "completion_photo_path")

    async def _handle_confirm_completion(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        if message.action != "confirm_completion":
            return StepResult.invalid("Please tap Yes, Done or Cancel.")

        draft = self.draft(session)
        result = await self.api.report_completion(draft.job_id, draft.worker_id, draft.completion_photo_path)
        if result.is_failure():
            return await self._refuse_report(session, result.reason)

        self.logger.info(f"[{self.tag}] Job {draft.job_id} reported done by worker {draft.worker_id}")
        return StepResult.complete(reply=lambda s: self._send_done(s, draft))

    async def _send_done(self, session: ConversationSession, draft: ExecutionDraft) -> None:
        await self.send_buttons(
            session,
            "🎉 *Great work!*\n\n"
            f"*{draft.job_title}* is marked as done. The poster has been asked to confirm and pay.\n"
            "പണി പൂർത്തിയായി!",
            [("browse_jobs", "🔍 Find More Jobs"), messages.MENU_BUTTON],
        )

    # ==================== PROMPTS ====================

    async def _prompt_arrival_photo(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "📸 *Arrival Verification*\n\n"
            f"Job: *{self.draft(session).job_title}*\n\n"
            "Send a photo when you reach the job location so the poster knows you're there.",
            [("skip_arrival_photo", "⏭️ Skip Photo")],
        )

    async def _prompt_confirm_arrival(self, session: ConversationSession) -> None:
        photo = "📷 Photo received.\n\n" if self.draft(session).arrival_photo_path else ""
        await self.send_buttons(
            session,
            f"{photo}📍 *At the job?*\n\nTap *I've Arrived* to tell the poster you're there.",
            [("confirm_arrival", "📍 I've Arrived"), messages.CANCEL_BUTTON],
        )

    async def _prompt_work_in_progress(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "⏳ *Work In Progress*\n\n"
            f"The poster knows you're at *{self.draft(session).job_title}*.\n"
            "Tap *Work Done* when you finish.",
            [("work_done", "✅ Work Done"), messages.MENU_BUTTON],
        )

    async def _prompt_completion_photo(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "📸 *Completion Photo*\n\nSend a photo of the finished work, or skip.",
            [("skip_completion_photo", "⏭️ Skip Photo")],
        )

    async def _prompt_confirm_completion(self, session: ConversationSession) -> None:
        draft = self.draft(session)
        await self.send_buttons(
            session,
            "✅ *Confirm Completion*\n\n"
            f"Job: *{draft.job_title}*\n"
            f"Photo: {'attached' if draft.completion_photo_path else 'none'}\n\n"
            "Report this job as done?",
            [("confirm_completion", "✅ Yes, Done"), messages.CANCEL_BUTTON],
        )

    async def prompt_complete(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "✅ Job reported as done. The poster will confirm and pay you.",
            [("browse_jobs", "🔍 Find More Jobs"), messages.MENU_BUTTON],
        )

    # ==================== HELPERS ====================

    async def _load_assigned_job(
        self, session: ConversationSession, job_id: Optional[int]
    ) -> Tuple[Optional[Dict], Optional[int], Optional[str]]:
        """(job, worker id, None) when this user may report on the job, else (None, None, reason)."""
        worker = await self.api.get_worker_by_user(session.user_id)
        if not worker:
            return None, None, NOT_A_WORKER

        if job_id is None:
            job = await self.api.get_active_job(worker["id"])
            if job is None:
                return None, None, NO_ACTIVE_JOB
        else:
            result = await self.api.get_job(job_id)
            if result.is_failure():
                return None, None, NOT_FOUND
            job = result.value

        if job.get("assignedWorkerId") != worker["id"]:
            return None, None, NOT_ASSIGNED
        if job.get("status") not in (ASSIGNED_STATUS, IN_PROGRESS_STATUS):
            return None, None, WRONG_STATUS
        return job, worker["id"], None

    async def _store_photo(self, message: IncomingMessage, session: ConversationSession, key: str) -> StepResult:
        if not message.media_id:
            return StepResult.invalid("We couldn't read that photo. Please send it again.")

        stored = await self.api.store_media(message.media_id, PHOTO_FOLDERS[key])
        self.logger.info(f"[{self.tag}] Proof photo stored: {stored['path']}")
        return StepResult.advance({key: stored["path"]})

    async def _refuse_report(self, session: ConversationSession, reason: Optional[str]) -> StepResult:
        self.logger.info(f"[{self.tag}] Report for job {self.draft(session).job_id} refused: {reason}")
        await self._discard_photos(session)
        await self.send_buttons(
            session, REJECTIONS.get(reason, messages.SERVICE_FAILURE), self._refusal_buttons(reason)
        )
        return StepResult.abort()

    async def _discard_photos(self, session: ConversationSession) -> None:
        draft = self.draft(session)
        for path in (draft.arrival_photo_path, draft.completion_photo_path):
            if not path:
                continue
            try:
                await self.api.delete_media(path)
                self.logger.info(f"[{self.tag}] Unreported photo deleted: {path}")
            except PanikkarApiError as e:
                self.logger.warning(f"[{self.tag}] Photo not deleted ({path}): {e}")

    @staticmethod
    def _refusal_buttons(reason: Optional[str]) -> List[Tuple[str, str]]:
        if reason == NOT_A_WORKER:
            return [("worker_register", "✅ Register"), messages.MENU_BUTTON]
        return [("browse_jobs", "🔍 Find Jobs"), messages.MENU_BUTTON]
