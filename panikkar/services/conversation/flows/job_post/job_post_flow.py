from enum import Enum
from typing import Dict

from panikkar.core.timezone_helper import TimezoneHelper
from panikkar.models.flow_type import FlowType
from panikkar.models.incoming import IncomingMessage, MessageKind, encode_selection
from panikkar.models.session import ConversationSession
from panikkar.schemas.job_post_schema import JobPostDraft
from panikkar.services.conversation import messages
from ..base_flow import BaseFlow
from ..registration.validators import RegistrationValidators
from ..step import SELECTION, TEXT, TEXT_OR_SELECTION, StepResult, StepSpec
from .data_formatter import DURATIONS, JobFormatter
from .validators import JobPostValidators

DEFAULT_PAY_RANGE = (200, 500)
MAX_CATEGORY_ROWS = 9
TOTAL_STEPS = 12

TIME_PRESETS = {
    "morning": ("🌅 Morning", "09:00"),
    "afternoon": ("☀️ Afternoon", "14:00"),
    "evening": ("🌆 Evening", "17:00"),
}


class JobPostStep(str, Enum):
    SELECT_CATEGORY = "select_category"
    ENTER_TITLE = "enter_title"
    ENTER_DESCRIPTION = "enter_description"
    ENTER_LOCATION = "enter_location"
    REQUEST_LOCATION_COORDS = "request_location_coords"
    SELECT_DATE = "select_date"
    ENTER_TIME = "enter_time"
    SELECT_DURATION = "select_duration"
    SUGGEST_PAY = "suggest_pay"
    ENTER_PAY = "enter_pay"
    ENTER_INSTRUCTIONS = "enter_instructions"
    CONFIRM_POST = "confirm_post"
    COMPLETE = "complete"


EDIT_ROWS = [
    {"id": "edit_category", "title": "🛠️ Job type"},
    {"id": "edit_title", "title": "📝 Title"},
    {"id": "edit_description", "title": "📄 Description"},
    {"id": "edit_location", "title": "📍 Place"},
    {"id": "edit_date", "title": "📅 Date"},
    {"id": "edit_time", "title": "⏰ Time"},
    {"id": "edit_duration", "title": "⏱️ Duration"},
    {"id": "edit_pay", "title": "💰 Pay"},
    {"id": "edit_instructions", "title": "📌 Instructions"},
    {"id": "back_to_confirm", "title": "⬅️ Back", "description": "Back to the summary"},
]

# Flags that switch a step to its free-text sub-prompt
CUSTOM_INPUT_FLAGS = {
    JobPostStep.SELECT_CATEGORY: "awaiting_custom_category",
    JobPostStep.SELECT_DATE: "awaiting_custom_date",
    JobPostStep.ENTER_TIME: "awaiting_custom_time",
}


class JobPostFlow(BaseFlow):
    """
    Responsibility: the job posting wizard.

    category -> title -> description (optional) -> place name
    -> coordinates (optional) -> date -> time -> duration -> suggested pay
    [-> custom pay] -> instructions (optional) -> confirm -> complete

    The job is created exactly once, when the poster confirms. Any step can
    be edited from the confirmation; the edited step returns straight there.
    """

    flow_type = FlowType.JOB_POST
    steps = JobPostStep
    first_step = JobPostStep.SELECT_CATEGORY
    terminal_step = JobPostStep.COMPLETE
    confirm_step = JobPostStep.CONFIRM_POST
    edit_targets = {
        "edit_category": JobPostStep.SELECT_CATEGORY,
        "edit_title": JobPostStep.ENTER_TITLE,
        "edit_description": JobPostStep.ENTER_DESCRIPTION,
        "edit_location": JobPostStep.ENTER_LOCATION,
        "edit_date": JobPostStep.SELECT_DATE,
        "edit_time": JobPostStep.ENTER_TIME,
        "edit_duration": JobPostStep.SELECT_DURATION,
        "edit_pay": JobPostStep.ENTER_PAY,
        "edit_instructions": JobPostStep.ENTER_INSTRUCTIONS,
    }
    draft_model = JobPostDraft

    def step_table(self):
        return {
            JobPostStep.SELECT_CATEGORY: StepSpec(
                handler=self._handle_category,
                prompt=self._prompt_category,
                expects=TEXT_OR_SELECTION,
                next=JobPostStep.ENTER_TITLE,
            ),
            JobPostStep.ENTER_TITLE: StepSpec(
                handler=self._handle_title,
                prompt=self._prompt_title,
                expects=TEXT,
                next=JobPostStep.ENTER_DESCRIPTION,
            ),
            JobPostStep.ENTER_DESCRIPTION: StepSpec(
                handler=self._handle_description,
                prompt=self._prompt_description,
                expects=TEXT,
                next=JobPostStep.ENTER_LOCATION,
                optional=True,
                skip_field="description",
                skip_ids=("skip", "skip_description"),
            ),
            JobPostStep.ENTER_LOCATION: StepSpec(
                handler=self._handle_location_name,
                prompt=self._prompt_location_name,
                expects=TEXT,
                next=JobPostStep.REQUEST_LOCATION_COORDS,
            ),
            JobPostStep.REQUEST_LOCATION_COORDS: StepSpec(
                handler=self._handle_coords,
                prompt=self._prompt_coords,
                expects=(MessageKind.LOCATION,),
                next=JobPostStep.SELECT_DATE,
                optional=True,
                skip_field="latitude",
                skip_ids=("skip", "skip_coords"),
            ),
            JobPostStep.SELECT_DATE: StepSpec(
                handler=self._handle_date,
                prompt=self._prompt_date,
                expects=TEXT_OR_SELECTION,
                next=JobPostStep.ENTER_TIME,
            ),
            JobPostStep.ENTER_TIME: StepSpec(
                handler=self._handle_time,
                prompt=self._prompt_time,
                expects=TEXT_OR_SELECTION,
                next=JobPostStep.SELECT_DURATION,
            ),
            JobPostStep.SELECT_DURATION: StepSpec(
                handler=self._handle_duration,
                prompt=self._prompt_duration,
                expects=SELECTION,
                next=JobPostStep.SUGGEST_PAY,
            ),
            JobPostStep.SUGGEST_PAY: StepSpec(
                handler=self._handle_suggested_pay,
                prompt=self._prompt_suggested_pay,
                expects=TEXT_OR_SELECTION,
                next=JobPostStep.ENTER_PAY,
                skip_next=JobPostStep.ENTER_INSTRUCTIONS,
            ),
            JobPostStep.ENTER_PAY: StepSpec(
                handler=self._handle_pay,
                prompt=self._prompt_pay,
                expects=TEXT,
                next=JobPostStep.ENTER_INSTRUCTIONS,
            ),
            JobPostStep.ENTER_INSTRUCTIONS: StepSpec(
                handler=self._handle_instructions,
                prompt=self._prompt_instructions,
                expects=TEXT,
                next=JobPostStep.CONFIRM_POST,
                optional=True,
                skip_field="special_instructions",
                skip_ids=("skip", "skip_instructions"),
            ),
            JobPostStep.CONFIRM_POST: StepSpec(
                handler=self._handle_confirm,
                prompt=self._prompt_confirm,
                expects=SELECTION,
                next=JobPostStep.COMPLETE,
            ),
        }

    def before_edit(self, session: ConversationSession, target: Enum) -> None:
        flag = CUSTOM_INPUT_FLAGS.get(target)
        if flag:
            self.temp.set(session, flag, False)

    async def handle_complete(self, message: IncomingMessage, session: ConversationSession) -> None:
        if message.action == "post_another":
            await self.engine.start_flow(session, FlowType.JOB_POST)
            return
        await super().handle_complete(message, session)

    # ==================== HANDLERS ====================

    async def _handle_category(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        if message.action == "other":
            return StepResult.stay({"awaiting_custom_category": True})

        if message.action == "cat" and message.selection.entity_int is not None:
            category = await self.api.get_category(message.selection.entity_int)
            if category is None:
                return StepResult.invalid("That job type is no longer available. Please pick another.")
            return StepResult.advance({
                "category_id": category["id"],
                "category_name": category["name"],
                "custom_job_type": None,
                "suggested_min": category.get("minPay") or DEFAULT_PAY_RANGE[0],
                "suggested_max": category.get("maxPay") or DEFAULT_PAY_RANGE[1],
                "awaiting_custom_category": False,
            })

        if message.is_text and self.temp.get(session, "awaiting_custom_category"):
            is_valid, error_msg, job_type = JobPostValidators.validate_custom_job_type(message.text)
            if not is_valid:
                return StepResult.invalid(error_msg)
            return StepResult.advance({
                "category_id": None,
                "category_name": None,
                "custom_job_type": job_type,
                "suggested_min": DEFAULT_PAY_RANGE[0],
                "suggested_max": DEFAULT_PAY_RANGE[1],
                "awaiting_custom_category": False,
            })

        return StepResult.invalid("Please pick a job type from the list, or choose Other.")

    async def _handle_title(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        is_valid, error_msg, title = JobPostValidators.validate_title(message.text)
        if not is_valid:
            return StepResult.invalid(error_msg)
        return StepResult.advance({"title": title})

    async def _handle_description(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        is_valid, error_msg, description = JobPostValidators.validate_description(message.text)
        if not is_valid:
            return StepResult.invalid(error_msg)
        return StepResult.advance({"description": description})

    async def _handle_location_name(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        is_valid, error_msg, location_name = JobPostValidators.validate_location_name(message.text)
        if not is_valid:
            return StepResult.invalid(error_msg)
        return StepResult.advance({"location_name": location_name})

    async def _handle_coords(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        is_valid, error_msg, location = RegistrationValidators.validate_location(message)
        if not is_valid:
            return StepResult.invalid(error_msg)
        return StepResult.advance({"latitude": location["latitude"], "longitude": location["longitude"]})

    async def _handle_date(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        if message.action == "today":
            return StepResult.advance({"job_date": TimezoneHelper.today().isoformat(), "awaiting_custom_date": False})
        if message.action == "tomorrow":
            return StepResult.advance({"job_date": TimezoneHelper.tomorrow().isoformat(), "awaiting_custom_date": False})
        if message.action == "custom_date":
            return StepResult.stay({"awaiting_custom_date": True})

        if message.is_text:
            is_valid, error_msg, job_date = JobPostValidators.validate_job_date(message.text)
            if not is_valid:
                return StepResult.invalid(error_msg)
            return StepResult.advance({"job_date": job_date.isoformat(), "awaiting_custom_date": False})

        return StepResult.invalid("Please pick Today, Tomorrow or Other Date.")

    async def _handle_time(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        if message.action in TIME_PRESETS:
            return StepResult.advance({"job_time": TIME_PRESETS[message.action][1], "awaiting_custom_time": False})
        if message.action == "custom_time":
            return StepResult.stay({"awaiting_custom_time": True})

        if message.is_text:
            is_valid, error_msg, job_time = JobPostValidators.validate_time(message.text)
            if not is_valid:
                return StepResult.invalid(error_msg)
            return StepResult.advance({"job_time": job_time, "awaiting_custom_time": False})

        return StepResult.invalid("Please pick a time from the list.")

    async def _handle_duration(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        if message.action not in DURATIONS:
            return StepResult.invalid("Please pick how long the job takes.")
        return StepResult.advance({"duration": message.action, "duration_hours": DURATIONS[message.action][1]})

    async def _handle_suggested_pay(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        if message.action == "custom_pay":
            return StepResult.advance()

        if message.action == "pay":
            amount = message.selection.entity_id
        elif message.is_text:
            amount = message.text
        else:
            return StepResult.invalid("Please pick an amount or tap Other Amount.")

        is_valid, error_msg, pay = JobPostValidators.validate_pay(amount)
        if not is_valid:
            return StepResult.invalid(error_msg)
        # amount settled here, so the custom pay step is skipped
        return StepResult.skip({"pay_amount": pay})

    async def _handle_pay(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        is_valid, error_msg, pay = JobPostValidators.validate_pay(message.text)
        if not is_valid:
            return StepResult.invalid(error_msg)
        return StepResult.advance({"pay_amount": pay})

    async def _handle_instructions(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        is_valid, error_msg, instructions = JobPostValidators.validate_instructions(message.text)
        if not is_valid:
            return StepResult.invalid(error_msg)
        return StepResult.advance({"special_instructions": instructions})

    async def _handle_confirm(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        if message.action == "edit_post":
            await self.send_list(session, "✏️ What would you like to change?", "✏️ Edit", [{"title": "Edit", "rows": EDIT_ROWS}])
            return StepResult.handled()

        if message.action == "back_to_confirm":
            return StepResult.stay()

        if message.action != "confirm_post":
            return StepResult.invalid("Please tap Post Job, Edit or Cancel.")

        draft = self.draft(session)
        job = await self.api.create_job_post(self._job_payload(session, draft))
        job_number = job.get("jobNumber") or job.get("id")
        self.logger.info(f"[{self.tag}] Job #{job_number} created")
        return StepResult.complete(reply=lambda s: self._send_posted(s, draft, job_number))

    async def _send_posted(self, session: ConversationSession, draft: JobPostDraft, job_number) -> None:
        await self.send_buttons(
            session,
            f"🎉 *Job Posted!* #{job_number}\n\n"
            f"{draft.job_type_label} - {draft.title}\n"
            f"💰 {JobFormatter.format_pay(draft.pay_amount)}\n\n"
            "Workers nearby are being notified. We'll message you when someone applies.\n"
            "പണിക്കാർക്ക് അറിയിപ്പ് അയച്ചു!",
            [("post_another", "➕ Post Another"), messages.MENU_BUTTON],
        )

    # ==================== PROMPTS ====================

    async def _prompt_category(self, session: ConversationSession) -> None:
        if self.temp.get(session, "awaiting_custom_category"):
            await self.send_text(
                session,
                "✏️ *Type the kind of work*\n\nFor example: Coconut climbing, Well cleaning"
            )
            return

        categories = await self.api.list_categories()
        rows = [
            {
                "id": encode_selection("cat", category["id"]),
                "title": f"{category.get('icon', '')} {category['name']}".strip(),
                "description": category.get("nameMl") or "",
            }
            for category in categories[:MAX_CATEGORY_ROWS]
        ]
        rows.append({"id": "other", "title": "➕ Other", "description": "Type your own job type"})

        await self.send_list(
            session,
            f"{self._progress(JobPostStep.SELECT_CATEGORY)}\n\n🛠️ *What kind of work is it?*\nഏത് തരം പണിയാണ്?",
            "🛠️ Job Types",
            [{"title": "Job Types", "rows": rows}],
            header="📋 Post a Job",
        )

    async def _prompt_title(self, session: ConversationSession) -> None:
        job_type = self.draft(session).job_type_label
        await self.send_text(
            session,
            f"{self._progress(JobPostStep.ENTER_TITLE)}\n\n"
            f"📝 *Give your {job_type} job a short title*\n\n"
            "For example: Need 2 people to shift furniture"
        )

    async def _prompt_description(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            f"{self._progress(JobPostStep.ENTER_DESCRIPTION)}\n\n"
            "📄 *Anything the worker should know?*\n\n"
            "Describe the work in a few lines, or tap Skip.",
            [("skip_description", "⏭️ Skip")],
        )

    async def _prompt_location_name(self, session: ConversationSession) -> None:
        await self.send_text(
            session,
            f"{self._progress(JobPostStep.ENTER_LOCATION)}\n\n"
            "📍 *Where is the job?*\n\nType the place name, for example: Kakkanad, near Infopark"
        )

    async def _prompt_coords(self, session: ConversationSession) -> None:
        await self.messenger.request_location(
            session.phone,
            f"{self._progress(JobPostStep.REQUEST_LOCATION_COORDS)}\n\n"
            "📍 Share the exact location so nearby workers can find it.",
        )
        await self.send_buttons(session, "No pin handy? You can skip this.", [("skip_coords", "⏭️ Skip")])

    async def _prompt_date(self, session: ConversationSession) -> None:
        if self.temp.get(session, "awaiting_custom_date"):
            await self.send_text(session, "📅 Type the date as DD/MM/YYYY, for example 25/12/2025")
            return

        await self.send_buttons(
            session,
            f"{self._progress(JobPostStep.SELECT_DATE)}\n\n📅 *When is the job?*",
            [("today", "📅 Today"), ("tomorrow", "📅 Tomorrow"), ("custom_date", "🗓️ Other Date")],
        )

    async def _prompt_time(self, session: ConversationSession) -> None:
        if self.temp.get(session, "awaiting_custom_time"):
            await self.send_text(session, "⏰ Type the start time, for example 9:30 AM or 14:00")
            return

        rows = [
            {"id": key, "title": label, "description": JobFormatter.format_time(hhmm)}
            for key, (label, hhmm) in TIME_PRESETS.items()
        ]
        rows.append({"id": "custom_time", "title": "✏️ Other time", "description": "Type the exact time"})
        await self.send_list(
            session,
            f"{self._progress(JobPostStep.ENTER_TIME)}\n\n⏰ *What time should the worker come?*",
            "⏰ Pick Time",
            [{"title": "Start time", "rows": rows}],
        )

    async def _prompt_duration(self, session: ConversationSession) -> None:
        rows = [{"id": key, "title": label} for key, (label, _) in DURATIONS.items()]
        await self.send_list(
            session,
            f"{self._progress(JobPostStep.SELECT_DURATION)}\n\n⏱️ *How long will it take?*",
            "⏱️ Duration",
            [{"title": "Duration", "rows": rows}],
        )

    async def _prompt_suggested_pay(self, session: ConversationSession) -> None:
        draft = self.draft(session)
        low = draft.suggested_min or DEFAULT_PAY_RANGE[0]
        high = draft.suggested_max or DEFAULT_PAY_RANGE[1]
        buttons = [(encode_selection("pay", amount), f"₹{amount:,}") for amount in sorted({low, high})]
        buttons.append(("custom_pay", "✏️ Other Amount"))
        await self.send_buttons(
            session,
            f"{self._progress(JobPostStep.SUGGEST_PAY)}\n\n"
            f"💰 *How much will you pay?*\n\n"
            f"Usual pay for {draft.job_type_label}: *₹{low:,} - ₹{high:,}*",
            buttons,
        )

    async def _prompt_pay(self, session: ConversationSession) -> None:
        await self.send_text(session, "💰 Type the amount in rupees, for example 750")

    async def _prompt_instructions(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            f"{self._progress(JobPostStep.ENTER_INSTRUCTIONS)}\n\n"
            "📌 *Any special instructions?*\n\nFor example: Bring your own tools",
            [("skip_instructions", "⏭️ Skip")],
        )

    async def _prompt_confirm(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            JobFormatter.format_draft_summary(self.draft(session)),
            [("confirm_post", "✅ Post Job"), ("edit_post", "✏️ Edit"), messages.CANCEL_BUTTON],
        )

    async def prompt_complete(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "✅ Your job is posted. Want to post another?",
            [("post_another", "➕ Post Another"), messages.MENU_BUTTON],
        )

    # ==================== HELPERS ====================

    def _job_payload(self, session: ConversationSession, draft: JobPostDraft) -> Dict:
        return {
            "posterUserId": session.user_id,
            "categoryId": draft.category_id,
            "customCategory": draft.custom_job_type,
            "title": draft.title,
            "description": draft.description,
            "locationName": draft.location_name,
            "latitude": draft.latitude,
            "longitude": draft.longitude,
            "jobDate": draft.job_date,
            "jobTime": draft.job_time,
            "durationHours": draft.duration_hours,
            "payAmount": draft.pay_amount,
            "specialInstructions": draft.special_instructions,
        }

    @staticmethod
    def _progress(step: JobPostStep) -> str:
        number = list(JobPostStep).index(step) + 1
        return f"Step {number} of {TOTAL_STEPS}"
