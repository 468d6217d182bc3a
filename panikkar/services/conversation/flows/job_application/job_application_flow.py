from enum import Enum
from typing import Dict, Optional

from panikkar.models.flow_type import FlowType
from panikkar.models.incoming import IncomingMessage, encode_selection
from panikkar.models.session import ConversationSession
from panikkar.schemas.application_schema import ApplicationDraft, ApplicationMessageSchema
from panikkar.schemas.validation import validate_field
from panikkar.services.conversation import messages
from panikkar.services.external.result import ALREADY_APPLIED, JOB_CLOSED, NOT_FOUND, OWN_JOB
from ..base_flow import BaseFlow
from ..job_post.data_formatter import JobFormatter
from ..job_post.validators import JobPostValidators
from ..step import SELECTION, TEXT, StepResult, StepSpec

OPEN_STATUS = "open"
BROWSE_LIMIT = 9

OTHER_JOBS_BUTTONS = [("browse_jobs", "🔍 Other Jobs"), messages.MENU_BUTTON]

REJECTIONS = {
    NOT_FOUND: "❌ *Job Not Found*\n\nThis job is no longer available.",
    JOB_CLOSED: "❌ *Job Closed*\n\nThis job is not taking applications any more.",
    ALREADY_APPLIED: "✅ *Already Applied!*\n\nYou have already applied for this job.",
    OWN_JOB: "❌ You can't apply to your own job!",
}


class JobApplicationStep(str, Enum):
    SELECT_JOB = "select_job"
    VIEW_DETAILS = "view_details"
    ENTER_MESSAGE = "enter_message"
    PROPOSE_AMOUNT = "propose_amount"
    CONFIRM_APPLICATION = "confirm_application"
    COMPLETE = "complete"


class JobApplicationFlow(BaseFlow):
    """
    Responsibility: browse open jobs and apply to one.

    select job -> details -> message (optional) -> amount (optional)
    -> confirm -> complete

    "Apply" on the details skips the message; "Apply + Message" asks for it.
    Started with job_id (job alert buttons) the flow opens on the details.
    """

    flow_type = FlowType.JOB_APPLICATION
    steps = JobApplicationStep
    first_step = JobApplicationStep.SELECT_JOB
    terminal_step = JobApplicationStep.COMPLETE
    confirm_step = JobApplicationStep.CONFIRM_APPLICATION
    edit_targets = {
        "edit_message": JobApplicationStep.ENTER_MESSAGE,
        "edit_amount": JobApplicationStep.PROPOSE_AMOUNT,
    }
    draft_model = ApplicationDraft

    def step_table(self):
        return {
            JobApplicationStep.SELECT_JOB: StepSpec(
                handler=self._handle_select_job,
                prompt=self._prompt_select_job,
                expects=SELECTION,
                next=JobApplicationStep.VIEW_DETAILS,
            ),
            JobApplicationStep.VIEW_DETAILS: StepSpec(
                handler=self._handle_details,
                prompt=self._prompt_details,
                expects=SELECTION,
                next=JobApplicationStep.ENTER_MESSAGE,
                skip_next=JobApplicationStep.PROPOSE_AMOUNT,
            ),
            JobApplicationStep.ENTER_MESSAGE: StepSpec(
                handler=self._handle_message,
                prompt=self._prompt_message,
                expects=TEXT,
                next=JobApplicationStep.PROPOSE_AMOUNT,
                optional=True,
                skip_field="message",
                skip_ids=("skip", "skip_message"),
            ),
            JobApplicationStep.PROPOSE_AMOUNT: StepSpec(
                handler=self._handle_amount,
                prompt=self._prompt_amount,
                expects=TEXT,
                next=JobApplicationStep.CONFIRM_APPLICATION,
                optional=True,
                skip_field="proposed_amount",
                skip_ids=("skip", "keep_amount"),
            ),
            JobApplicationStep.CONFIRM_APPLICATION: StepSpec(
                handler=self._handle_confirm,
                prompt=self._prompt_confirm,
                expects=SELECTION,
                next=JobApplicationStep.COMPLETE,
            ),
        }

    def entry_step(self, session: ConversationSession, job_id: Optional[int] = None, **entry) -> Enum:
        if job_id is None:
            return self.first_step
        self.temp.set(session, "job_id", job_id)
        return JobApplicationStep.VIEW_DETAILS

    # ==================== HANDLERS ====================

    async def _handle_select_job(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        job_id = message.selection.entity_int if message.action == "view_job" else None
        if job_id is None:
            return StepResult.invalid("Please pick a job from the list.")
        return StepResult.advance({"job_id": job_id})

    async def _handle_details(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        if message.action == "skip_job":
            return StepResult.switch(FlowType.JOB_APPLICATION)

        if message.action not in ("apply_now", "apply_msg"):
            return StepResult.invalid("Please tap Apply, Apply + Message or Skip.")

        worker = await self.api.get_worker_by_user(session.user_id)
        if not worker:
            await self.send_buttons(
                session,
                "👷 *Register as a worker first!*\n\n"
                "You need a worker profile to apply for jobs. It takes 2 minutes.",
                [("worker_register", "✅ Register"), messages.MENU_BUTTON],
            )
            return StepResult.abort()

        job = await self._load_open_job(session, self.draft(session).job_id)
        if job is None:
            return StepResult.abort()

        updates = {"worker_id": worker["id"], "job_title": job.get("title"), "job_pay": job.get("payAmount")}
        if message.action == "apply_msg":
            return StepResult.advance(updates)
        return StepResult.skip(updates)

    async def _handle_message(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        is_valid, error_msg, text = validate_field(ApplicationMessageSchema, "message", message.text or "")
        if not is_valid or not text:
            return StepResult.invalid("Please type a short message or tap Skip.")
        return StepResult.advance({"message": text})

    async def _handle_amount(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        is_valid, error_msg, amount = JobPostValidators.validate_pay(message.text)
        if not is_valid:
            return StepResult.invalid(error_msg)
        return StepResult.advance({"proposed_amount": amount})

    async def _handle_confirm(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        if message.action == "edit_application":
            await self.send_list(
                session,
                "✏️ What would you like to change?",
                "✏️ Edit",
                [{"title": "Edit", "rows": [
                    {"id": "edit_message", "title": "💬 Message"},
                    {"id": "edit_amount", "title": "💰 Amount"},
                    {"id": "back_to_confirm", "title": "⬅️ Back", "description": "Back to the summary"},
                ]}],
            )
            return StepResult.handled()

        if message.action == "back_to_confirm":
            return StepResult.stay()

        if message.action != "confirm_application":
            return StepResult.invalid("Please tap Send, Edit or Cancel.")

        draft = self.draft(session)
        result = await self.api.apply_to_job(
            draft.job_id,
            draft.worker_id,
            {"message": draft.message, "proposedAmount": draft.proposed_amount},
        )
        if result.is_failure():
            self.logger.info(f"[{self.tag}] Application to job {draft.job_id} refused: {result.reason}")
            await self.send_buttons(session, self._rejection_text(result.reason, result.message), OTHER_JOBS_BUTTONS)
            return StepResult.abort()

        self.logger.info(f"[{self.tag}] Applied to job {draft.job_id}")
        return StepResult.complete(reply=lambda s: self._send_applied(s, draft))

    async def _send_applied(self, session: ConversationSession, draft: ApplicationDraft) -> None:
        await self.send_buttons(
            session,
            "🎉 *Application Sent!*\n\n"
            f"📋 {draft.job_title}\n"
            f"💰 {draft.amount_label}\n\n"
            "The poster will contact you if you're selected.\n"
            "തിരഞ്ഞെടുത്താൽ അറിയിക്കാം!",
            OTHER_JOBS_BUTTONS,
        )

    # ==================== PROMPTS ====================

    async def _prompt_select_job(self, session: ConversationSession) -> None:
        jobs = await self.api.list_open_jobs(exclude_user_id=session.user_id, limit=BROWSE_LIMIT)
        if not jobs:
            await self.send_buttons(
                session,
                "🔍 *No open jobs right now*\n\nWe'll let you know when new jobs are posted nearby.",
                [messages.MENU_BUTTON],
            )
            return

        rows = [
            {"id": encode_selection("view_job", job["id"]), **JobFormatter.format_job_row(job)}
            for job in jobs[:BROWSE_LIMIT]
        ]
        await self.send_list(
            session,
            f"🔍 *Open Jobs* ({len(rows)})\n\nPick a job to see the details.",
            "👷 View Jobs",
            [{"title": "Open Jobs", "rows": rows}],
            header="👷 Find Jobs",
        )

    async def _prompt_details(self, session: ConversationSession) -> None:
        job_id = self.draft(session).job_id
        result = await self.api.get_job(job_id)
        if result.is_failure():
            await self.send_buttons(session, REJECTIONS[NOT_FOUND], OTHER_JOBS_BUTTONS)
            return

        job = result.value
        if job.get("latitude") is not None and job.get("longitude") is not None:
            await self.messenger.send_location(
                session.phone, job["latitude"], job["longitude"], job.get("title"), job.get("locationName")
            )

        await self.send_buttons(
            session,
            JobFormatter.format_job_details(job),
            [("apply_now", "✅ Apply"), ("apply_msg", "💬 Apply + Message"), ("skip_job", "❌ Skip")],
            header="👷 Job",
        )

    async def _prompt_message(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "💬 *Message for the poster*\n\n"
            "For example: \"I have 5 years of experience\"\n\n"
            f"📋 For: *{self.draft(session).job_title}*",
            [("skip_message", "⏭️ Skip Message")],
        )

    async def _prompt_amount(self, session: ConversationSession) -> None:
        draft = self.draft(session)
        posted = JobFormatter.format_pay(draft.job_pay)
        await self.send_buttons(
            session,
            f"💰 *Your rate*\n\nThe poster offers *{posted}*. Type a different amount, or keep it.",
            [("keep_amount", f"✅ Keep {posted}")],
        )

    async def _prompt_confirm(self, session: ConversationSession) -> None:
        draft = self.draft(session)
        await self.send_buttons(
            session,
            "📋 *Check your application*\n\n"
            f"👷 Job: *{draft.job_title}*\n"
            f"💰 Amount: {draft.amount_label}\n"
            f"💬 Message: {draft.message or '-'}",
            [("confirm_application", "✅ Send"), ("edit_application", "✏️ Edit"), messages.CANCEL_BUTTON],
        )

    async def prompt_complete(self, session: ConversationSession) -> None:
        await self.send_buttons(session, "✅ Your application was sent.", OTHER_JOBS_BUTTONS)

    # ==================== HELPERS ====================

    async def _load_open_job(self, session: ConversationSession, job_id: Optional[int]) -> Optional[Dict]:
        """The job if this user may apply to it; otherwise the reason is sent and None returned."""
        result = await self.api.get_job(job_id)
        if result.is_failure():
            await self.send_buttons(session, REJECTIONS[NOT_FOUND], OTHER_JOBS_BUTTONS)
            return None

        job = result.value
        if job.get("status") != OPEN_STATUS:
            await self.send_buttons(session, REJECTIONS[JOB_CLOSED], OTHER_JOBS_BUTTONS)
            return None
        if job.get("posterUserId") == session.user_id:
            await self.send_buttons(session, REJECTIONS[OWN_JOB], OTHER_JOBS_BUTTONS)
            return None
        return job

    @staticmethod
    def _rejection_text(reason: Optional[str], detail: Optional[str] = None) -> str:
        text = REJECTIONS.get(reason, messages.SERVICE_FAILURE)
        if detail:
            text += f"\n\n_{detail}_"
        return text
