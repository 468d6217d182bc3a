from enum import Enum
from typing import Dict, List, Optional

from panikkar.models.flow_type import FlowType
from panikkar.models.incoming import IncomingMessage, MessageKind, encode_selection
from panikkar.models.session import ConversationSession
from panikkar.schemas.worker_schema import VehicleType, WorkerAvailability, WorkerDraft
from panikkar.services.conversation import messages
from panikkar.services.external import PanikkarApiError
from ..base_flow import BaseFlow
from ..registration.validators import RegistrationValidators
from ..step import SELECTION, TEXT, StepResult, StepSpec

PHOTO_FOLDER = "workers"
MAX_JOB_TYPE_ROWS = 9


class WorkerRegistrationStep(str, Enum):
    ASK_NAME = "ask_name"
    ASK_LOCATION = "ask_location"
    ASK_PHOTO = "ask_photo"
    ASK_JOB_TYPES = "ask_job_types"
    ASK_VEHICLE = "ask_vehicle"
    ASK_AVAILABILITY = "ask_availability"
    CONFIRM = "confirm"
    DONE = "done"


EDIT_ROWS = [
    {"id": "edit_name", "title": "👤 Name"},
    {"id": "edit_location", "title": "📍 Location"},
    {"id": "edit_photo", "title": "📷 Photo"},
    {"id": "edit_job_types", "title": "🛠️ Job types"},
    {"id": "edit_vehicle", "title": "🛵 Vehicle"},
    {"id": "edit_availability", "title": "🕐 Availability"},
    {"id": "back_to_confirm", "title": "⬅️ Back", "description": "Back to the summary"},
]


class WorkerRegistrationFlow(BaseFlow):
    """
    Responsibility: build a worker profile so the user gets job alerts.

    name -> location -> photo (optional) -> job types (multi-select)
    -> vehicle -> availability -> confirm -> done

    A photo is uploaded to storage as soon as it arrives. If the run is
    abandoned, handle_timeout deletes it again.
    """

    flow_type = FlowType.WORKER_REGISTRATION
    steps = WorkerRegistrationStep
    first_step = WorkerRegistrationStep.ASK_NAME
    terminal_step = WorkerRegistrationStep.DONE
    confirm_step = WorkerRegistrationStep.CONFIRM
    edit_targets = {
        "edit_name": WorkerRegistrationStep.ASK_NAME,
        "edit_location": WorkerRegistrationStep.ASK_LOCATION,
        "edit_photo": WorkerRegistrationStep.ASK_PHOTO,
        "edit_job_types": WorkerRegistrationStep.ASK_JOB_TYPES,
        "edit_vehicle": WorkerRegistrationStep.ASK_VEHICLE,
        "edit_availability": WorkerRegistrationStep.ASK_AVAILABILITY,
    }
    draft_model = WorkerDraft

    def step_table(self):
        return {
            WorkerRegistrationStep.ASK_NAME: StepSpec(
                handler=self._handle_name,
                prompt=self._prompt_name,
                expects=TEXT,
                next=WorkerRegistrationStep.ASK_LOCATION,
            ),
            WorkerRegistrationStep.ASK_LOCATION: StepSpec(
                handler=self._handle_location,
                prompt=self._prompt_location,
                expects=(MessageKind.LOCATION,),
                next=WorkerRegistrationStep.ASK_PHOTO,
            ),
            WorkerRegistrationStep.ASK_PHOTO: StepSpec(
                handler=self._handle_photo,
                prompt=self._prompt_photo,
                expects=(MessageKind.IMAGE,),
                next=WorkerRegistrationStep.ASK_JOB_TYPES,
                optional=True,
                skip_ids=("skip", "skip_worker_photo"),
            ),
            WorkerRegistrationStep.ASK_JOB_TYPES: StepSpec(
                handler=self._handle_job_types,
                prompt=self._prompt_job_types,
                expects=SELECTION,
                next=WorkerRegistrationStep.ASK_VEHICLE,
            ),
            WorkerRegistrationStep.ASK_VEHICLE: StepSpec(
                handler=self._handle_vehicle,
                prompt=self._prompt_vehicle,
                expects=SELECTION,
                next=WorkerRegistrationStep.ASK_AVAILABILITY,
            ),
            WorkerRegistrationStep.ASK_AVAILABILITY: StepSpec(
                handler=self._handle_availability,
                prompt=self._prompt_availability,
                expects=SELECTION,
                next=WorkerRegistrationStep.CONFIRM,
            ),
            WorkerRegistrationStep.CONFIRM: StepSpec(
                handler=self._handle_confirm,
                prompt=self._prompt_confirm,
                expects=SELECTION,
                next=WorkerRegistrationStep.DONE,
            ),
        }

    async def start(self, session: ConversationSession, **entry) -> None:
        try:
            worker = await self.api.get_worker_by_user(session.user_id)
        except PanikkarApiError as e:
            await self._report_service_failure(session, e)
            return

        if worker:
            self.logger.info(f"[{self.tag}] User {session.user_id} is already worker {worker.get('id')}")
            self.sessions.reset_to_main_menu(session)
            await self.send_buttons(
                session,
                "👷 *You're already registered as a worker!*\n\nLet's find you some work.",
                [("browse_jobs", "🔍 Find Jobs"), messages.MENU_BUTTON],
            )
            return

        await super().start(session, **entry)

    async def handle_timeout(self, session: ConversationSession) -> None:
        """Removes a photo uploaded during a run that never got confirmed."""
        photo_path = self.temp.get(session, "photo_path")
        if photo_path:
            await self.api.delete_media(photo_path)
            self.logger.info(f"[{self.tag}] Unconfirmed photo deleted: {photo_path}")

    # ==================== HANDLERS ====================

    async def _handle_name(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        is_valid, error_msg, name = RegistrationValidators.validate_name(message.text)
        if not is_valid:
            return StepResult.invalid(error_msg)
        return StepResult.advance({"name": name})

    async def _handle_location(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        is_valid, error_msg, location = RegistrationValidators.validate_location(message)
        if not is_valid:
            return StepResult.invalid(error_msg)
        return StepResult.advance(location)

    async def _handle_photo(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        if not message.media_id:
            return StepResult.invalid("We couldn't read that photo. Please send it again.")

        stored = await self.api.store_media(message.media_id, PHOTO_FOLDER)

        previous = self.temp.get(session, "photo_path")
        if previous and previous != stored["path"]:
            try:
                await self.api.delete_media(previous)
            except PanikkarApiError as e:
                self.logger.warning(f"[{self.tag}] Replaced photo not deleted ({previous}): {e}")

        return StepResult.advance({"photo_path": stored["path"], "photo_url": stored.get("url")})

    async def _handle_job_types(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        draft = self.draft(session)

        if message.action == "done_job_types":
            if not draft.job_types:
                return StepResult.invalid("Please pick at least one type of work.")
            return StepResult.advance()

        if message.action != "job_type" or message.selection.entity_int is None:
            return StepResult.invalid("Please pick job types from the list.")

        category_id = message.selection.entity_int
        category = self._find_category(await self.api.list_categories(), category_id)
        if category is None:
            return StepResult.invalid("That job type is no longer available.")

        selected = dict(zip(draft.job_types, draft.job_type_names))
        if category_id in selected:
            selected.pop(category_id)
        else:
            selected[category_id] = category["name"]

        return StepResult.stay({"job_types": list(selected), "job_type_names": list(selected.values())})

    async def _handle_vehicle(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        vehicle = self._enum_choice(message, "vehicle", VehicleType)
        if vehicle is None:
            return StepResult.invalid("Please tap one of the vehicle options.")
        return StepResult.advance({"vehicle_type": vehicle.value})

    async def _handle_availability(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        availability = self._enum_choice(message, "availability", WorkerAvailability)
        if availability is None:
            return StepResult.invalid("Please pick when you are available.")
        return StepResult.advance({"availability": availability.value})

    async def _handle_confirm(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        if message.action == "edit_worker_reg":
            await self._prompt_edit_menu(session)
            return StepResult.handled()

        if message.action == "back_to_confirm":
            return StepResult.stay()

        if message.action != "confirm_worker_reg":
            return StepResult.invalid("Please tap Confirm, Edit or Cancel.")

        draft = self.draft(session)
        worker = await self.api.register_worker({
            "userId": session.user_id,
            "name": draft.name,
            "photoPath": draft.photo_path,
            "latitude": draft.latitude,
            "longitude": draft.longitude,
            "address": draft.address,
            "jobTypes": draft.job_types,
            "vehicleType": draft.vehicle_type.value,
            "availability": draft.availability.value,
        })
        self.logger.info(f"[{self.tag}] Worker {worker.get('id')} registered for user {session.user_id}")
        return StepResult.complete(reply=lambda s: self._send_welcome(s, draft.name))

    async def _send_welcome(self, session: ConversationSession, name: str) -> None:
        await self.send_buttons(
            session,
            f"🎉 *Welcome aboard, {name}!*\n\n"
            "You'll get a message when a job that fits you is posted nearby.\n"
            "പുതിയ ജോലികൾ വരുമ്പോൾ അറിയിക്കാം!",
            [("browse_jobs", "🔍 Find Jobs"), messages.MENU_BUTTON],
        )

    # ==================== PROMPTS ====================

    async def _prompt_name(self, session: ConversationSession) -> None:
        await self.send_text(
            session,
            "👷 *Worker Registration* (1/6)\n\n"
            "What name should job posters see?\n"
            "പേര് ടൈപ്പ് ചെയ്യുക."
        )

    async def _prompt_location(self, session: ConversationSession) -> None:
        await self.messenger.request_location(
            session.phone,
            "📍 *Your location* (2/6)\n\nShare where you usually work from. We use it to find jobs near you.",
        )

    async def _prompt_photo(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "📷 *Profile photo* (3/6)\n\n"
            "Send a clear photo of yourself. Posters trust workers with a photo.",
            [("skip_worker_photo", "⏭️ Skip")],
        )

    async def _prompt_job_types(self, session: ConversationSession) -> None:
        draft = self.draft(session)
        categories = await self.api.list_categories()

        rows = []
        for category in categories[:MAX_JOB_TYPE_ROWS]:
            mark = "✅ " if category["id"] in draft.job_types else ""
            rows.append({
                "id": encode_selection("job_type", category["id"]),
                "title": f"{mark}{category.get('icon', '')} {category['name']}".strip(),
                "description": category.get("nameMl") or "",
            })

        body = "🛠️ *What work can you do?* (4/6)\n\nPick one at a time. Pick again to remove."
        if draft.job_types:
            body += f"\n\nSelected: {', '.join(draft.job_type_names)}"
            rows.append({"id": "done_job_types", "title": "✅ Done", "description": "Continue with these"})

        await self.send_list(session, body, "🛠️ Job Types", [{"title": "Job Types", "rows": rows}])

    async def _prompt_vehicle(self, session: ConversationSession) -> None:
        await self.send_buttons(
            session,
            "🛵 *Do you have a vehicle?* (5/6)",
            [(encode_selection("vehicle", v.value), v.label) for v in VehicleType],
        )

    async def _prompt_availability(self, session: ConversationSession) -> None:
        rows = [
            {"id": encode_selection("availability", a.value), "title": a.label}
            for a in WorkerAvailability
        ]
        await self.send_list(
            session,
            "🕐 *When are you usually free?* (6/6)",
            "🕐 Availability",
            [{"title": "Availability", "rows": rows}],
        )

    async def _prompt_confirm(self, session: ConversationSession) -> None:
        draft = self.draft(session)
        await self.send_buttons(
            session,
            "📋 *Your worker profile*\n\n"
            f"👤 Name: *{draft.name}*\n"
            f"📍 Location: {draft.address or 'Shared'}\n"
            f"📷 Photo: {'Added' if draft.photo_path else 'Not added'}\n"
            f"🛠️ Work: {', '.join(draft.job_type_names)}\n"
            f"🛵 Vehicle: {draft.vehicle_type.label if draft.vehicle_type else '-'}\n"
            f"🕐 Available: {draft.availability.label if draft.availability else '-'}",
            [("confirm_worker_reg", "✅ Confirm"), ("edit_worker_reg", "✏️ Edit"), messages.CANCEL_BUTTON],
        )

    async def _prompt_edit_menu(self, session: ConversationSession) -> None:
        await self.send_list(session, "✏️ What would you like to change?", "✏️ Edit", [{"title": "Edit", "rows": EDIT_ROWS}])

    # ==================== HELPERS ====================

    @staticmethod
    def _find_category(categories: List[Dict], category_id: int) -> Optional[Dict]:
        return next((c for c in categories if c.get("id") == category_id), None)

    @staticmethod
    def _enum_choice(message: IncomingMessage, action: str, enum_cls):
        if message.action != action:
            return None
        try:
            return enum_cls(message.selection.entity_id)
        except ValueError:
            return None
