from enum import Enum
from typing import Dict, List, Optional

from panikkar.models.flow_type import FlowType
from panikkar.models.incoming import IncomingMessage, encode_selection
from panikkar.models.session import ConversationSession
from panikkar.schemas.selection_schema import SelectionDraft
from panikkar.services.conversation import messages
from panikkar.services.external import PanikkarApiError
from panikkar.services.external.result import ALREADY_SELECTED, JOB_CLOSED, NOT_FOUND
from ..base_flow import BaseFlow
from ..job_post.data_formatter import JobFormatter
from ..step import SELECTION, StepResult, StepSpec

OPEN_STATUS = "open"
PENDING_STATUS = "pending"
MAX_ROWS = 10
NOT_YOURS = "not_yours"

REVIEW_BUTTONS = [("review_applicants", "👥 Other Jobs"), messages.MENU_BUTTON]

REJECTIONS = {
    NOT_FOUND: "❌ *Job Not Found*\n\nThis job is no longer available.",
    NOT_YOURS: "❌ Only the person who posted a job can choose its worker.",
    JOB_CLOSED: "❌ *Job Closed*\n\nThis job is not open any more.",
    ALREADY_SELECTED: "✅ *Worker Already Chosen*\n\nThis job already has a worker.",
}


class JobSelectionStep(str, Enum):
    SELECT_JOB = "select_job"
    VIEW_APPLICATIONS = "view_applications"
    VIEW_APPLICANT = "view_applicant"
    CONFIRM_SELECTION = "confirm_selection"
    SELECTED = "selected"


class JobSelectionFlow(BaseFlow):
    """
    Responsibility: let a poster review applicants and pick one worker.

    select job -> applications -> applicant -> confirm -> selected

    Started with job_id (new-application alerts) the flow opens on the
    job's applications. Going back to the list restarts the flow on the
    same job.
    """

    flow_type = FlowType.JOB_SELECTION
    steps = JobSelectionStep
    first_step = JobSelectionStep.SELECT_JOB
    terminal_step = JobSelectionStep.SELECTED
    draft_model = SelectionDraft

    def step_table(self):
        return {
            JobSelectionStep.SELECT_JOB: StepSpec(
                handler=self._handle_select_job,
                prompt=self._prompt_select_job,
                expects=SELECTION,
                next=JobSelectionStep.VIEW_APPLICATIONS,
            ),
            JobSelectionStep.VIEW_APPLICATIONS: StepSpec(
                handler=self._handle_pick_applicant,
                prompt=self._prompt_applications,
                expects=SELECTION,
                next=JobSelectionStep.VIEW_APPLICANT,
            ),
            JobSelectionStep.VIEW_APPLICANT: StepSpec(
                handler=self._handle_applicant,
                prompt=self._prompt_applicant,
                expects=SELECTION,
                next=JobSelectionStep.CONFIRM_SELECTION,
            ),
            JobSelectionStep.CONFIRM_SELECTION: StepSpec(
                handler=self._handle_confirm,
                prompt=self._prompt_confirm,
                expects=SELECTION,
                next=JobSelectionStep.SELECTED,
            ),
        }

    async def start(self, session: ConversationSession, job_id: Optional[int] = None, **entry) -> None:
        if job_id is None:
            await super().start(session)
            return

        try:
            job = await self._load_own_job(session, job_id)
        except PanikkarApiError as e:
            await self._report_service_failure(session, e)
            return

        if job is None:
            self.sessions.reset_to_main_menu(session)
            return
        await super().start(session, job=job)

    def entry_step(self, session: ConversationSession, job: Optional[Dict] = None, **entry) -> Enum:
        if job is None:
            return self.first_step
        self.temp.merge(session, self._job_fields(job))
        return JobSelectionStep.VIEW_APPLICATIONS

    # ==================== HANDLERS ====================

    async def _handle_select_job(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        job_id = message.selection.entity_int if message.action == "review_job" else None
        if job_id is None:
            return StepResult.invalid("Please pick a job from the list.")

        job = await self._load_own_job(session, job_id)
        if job is None:
            return StepResult.abort()
        return StepResult.advance(self._job_fields(job))

    async def _handle_pick_applicant(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        application_id = message.selection.entity_int if message.action == "select_worker" else None
        if application_id is None:
            return StepResult.invalid("Please pick a worker from the list.")

        result = await self.api.get_application(application_id)
        application = result.value if result.is_success() else None
        if (
            application is None
            or application.get("jobPostId") != self.draft(session).job_id
            or application.get("status") != PENDING_STATUS
        ):
            return StepResult.invalid("That application is no longer open. Please pick another worker.")

        return StepResult.advance({
            "application_id": application["id"],
            "worker_name": application.get("workerName"),
            "worker_rating": application.get("workerRating"),
            "worker_jobs_done": application.get("workerJobsCompleted"),
            "proposed_amount": application.get("proposedAmount"),
            "application_message": application.get("message"),
        })

    async def _handle_applicant(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        draft = self.draft(session)

        if message.action == "select_this_worker":
            return StepResult.advance()

        if message.action == "back_to_list":
            return StepResult.switch(FlowType.JOB_SELECTION, job_id=draft.job_id)

        if message.action == "reject_this":
            if not await self.api.reject_application(draft.application_id):
                return StepResult.invalid("We couldn't decline that application. Please try again.")
            self.logger.info(f"[{self.tag}] Application {draft.application_id} declined")
            await self.send_text(session, f"👋 {draft.worker_name or 'The worker'} was told this job went to someone else.")
            return StepResult.switch(FlowType.JOB_SELECTION, job_id=draft.job_id)

        return StepResult.invalid("Please tap Select, Reject or Back.")

    async def _handle_confirm(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        draft = self.draft(session)

        if message.action == "back_to_list":
            return StepResult.switch(FlowType.JOB_SELECTION, job_id=draft.job_id)

        if message.action != "confirm_select":
            return StepResult.invalid("Please tap Confirm, Back or Cancel.")

        result = await self.api.select_application(draft.application_id)
        if result.is_failure():
            self.logger.info(f"[{self.tag}] Selection for job {draft.job_id} refused: {result.reason}")
            text = REJECTIONS.get(result.reason, messages.SERVICE_FAILURE)
            if result.message:
                text += f"\n\n_{result.message}_"
            await self.send_buttons(session, text, REVIEW_BUTTONS)
            return StepResult.abort()

        self.logger.info(f"[{self.tag}] Job {draft.job_id} assigned through application {draft.application_id}")
        worker_phone = (result.value or {}).get("workerPhone")
        return StepResult.complete(reply=lambda s: self._send_selected(s, draft, worker_phone))

    async def _send_selected(self, session: ConversationSession, draft: SelectionDraft, worker_phone: Optional[str]) -> None:
        text = (
            "🎉 *Worker Selected!*\n\n"
            f"👷 *{draft.worker_name}* will do *{draft.job_title}*\n"
            f"💰 {draft.amount_label}\n"
        )
        if worker_phone:
            text += f"📞 +{worker_phone}\n"
        text += (
            "\nWe've sent them the job details and told the other applicants.\n"
            "പണിക്കാരനെ തിരഞ്ഞെടുത്തു!"
        )
        await self.send_buttons(session, text, [("job_post", "📋 Post a Job"), messages.MENU_BUTTON])

    # ==================== PROMPTS ====================

    async def _prompt_select_job(self, session: ConversationSession) -> None:
        jobs = await self.api.list_jobs_with_applications(session.user_id)
        if not jobs:
            await self.send_buttons(
                session,
                "📭 *No applications yet*\n\nWhen workers apply to your jobs, you'll find them here.",
                [("job_post", "📋 Post a Job"), messages.MENU_BUTTON],
            )
            return

        rows = [self._job_row(job) for job in jobs[:MAX_ROWS]]
        await self.send_list(
            session,
            "👥 *Your jobs with applicants*\n\nPick a job to see who applied.",
            "👥 View Jobs",
            [{"title": "Your Jobs", "rows": rows}],
            header="👥 Choose a Worker",
        )

    async def _prompt_applications(self, session: ConversationSession) -> None:
        draft = self.draft(session)
        applications = await self.api.list_applications(draft.job_id)
        if not applications:
            await self.send_buttons(
                session,
                f"📭 *No open applications*\n\nNobody is waiting for *{draft.job_title}* right now.",
                REVIEW_BUTTONS,
            )
            return

        rows = [self._applicant_row(application) for application in applications[:MAX_ROWS]]
        await self.send_list(
            session,
            f"👥 *{len(applications)} applied* for *{draft.job_title}*\n\nPick a worker to see the details.",
            "👷 View Workers",
            [{"title": "Applicants", "rows": rows}],
            header="👥 Applicants",
        )

    async def _prompt_applicant(self, session: ConversationSession) -> None:
        draft = self.draft(session)
        lines = [
            f"👷 *{draft.worker_name}*",
            "",
            draft.rating_label,
        ]
        if draft.worker_jobs_done:
            lines.append(f"✅ {draft.worker_jobs_done} jobs done")
        lines.append(f"💰 Asks: {draft.amount_label}")
        if draft.application_message:
            lines += ["", f"💬 _{draft.application_message}_"]

        await self.send_buttons(
            session,
            "\n".join(lines),
            [("select_this_worker", "✅ Select"), ("reject_this", "❌ Reject"), ("back_to_list", "⬅️ Back")],
            header=draft.job_title,
        )

    async def _prompt_confirm(self, session: ConversationSession) -> None:
        draft = self.draft(session)
        await self.send_buttons(
            session,
            "🤝 *Confirm Selection*\n\n"
            f"📋 Job: *{draft.job_title}*\n"
            f"👷 Worker: *{draft.worker_name}*\n"
            f"{draft.rating_label}\n"
            f"💰 Amount: {draft.amount_label}\n\n"
            "The other applicants will be told the job is taken.",
            [("confirm_select", "✅ Confirm"), ("back_to_list", "⬅️ Back"), messages.CANCEL_BUTTON],
        )

    async def prompt_complete(self, session: ConversationSession) -> None:
        await self.send_buttons(session, "✅ Your worker is chosen.", [("job_post", "📋 Post a Job"), messages.MENU_BUTTON])

    # ==================== HELPERS ====================

    async def _load_own_job(self, session: ConversationSession, job_id: int) -> Optional[Dict]:
        """The job if this user posted it and it is still open; otherwise the reason is sent and None returned."""
        result = await self.api.get_job(job_id)
        reason = None
        if result.is_failure():
            reason = NOT_FOUND
        elif result.value.get("posterUserId") != session.user_id:
            reason = NOT_YOURS
        elif result.value.get("status") != OPEN_STATUS:
            reason = ALREADY_SELECTED if result.value.get("assignedWorkerId") else JOB_CLOSED

        if reason is not None:
            self.logger.info(f"[{self.tag}] Job {job_id} not selectable: {reason}")
            await self.send_buttons(session, REJECTIONS[reason], REVIEW_BUTTONS)
            return None
        return result.value

    @staticmethod
    def _job_fields(job: Dict) -> Dict:
        return {"job_id": job["id"], "job_title": job.get("title"), "job_pay": job.get("payAmount")}

    @staticmethod
    def _job_row(job: Dict) -> Dict:
        row = JobFormatter.format_job_row(job)
        row["description"] = f"👥 {job.get('applicationsCount') or 0} applied • {row['description']}"
        return {"id": encode_selection("review_job", job["id"]), **row}

    @staticmethod
    def _applicant_row(application: Dict) -> Dict:
        amount = application.get("proposedAmount")
        details: List[str] = [
            f"⭐ {application['workerRating']:.1f}" if application.get("workerRating") else "New worker",
            JobFormatter.format_pay(amount) if amount is not None else "Posted pay",
        ]
        if application.get("message"):
            details.append(application["message"])
        return {
            "id": encode_selection("select_worker", application["id"]),
            "title": f"👷 {application.get('workerName') or 'Worker'}",
            "description": " • ".join(details),
        }
