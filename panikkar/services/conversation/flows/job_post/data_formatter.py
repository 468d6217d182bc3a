import logging
from typing import Dict, Optional

from panikkar.core.timezone_helper import TimezoneHelper
from panikkar.schemas.job_post_schema import JobPostDraft

logger = logging.getLogger(__name__)

DURATIONS = {
    "30min": ("⏱️ 30 minutes", 0.5),
    "1hr": ("⏱️ 1 hour", 1),
    "2hr": ("⏱️ 2 hours", 2),
    "3hr": ("⏱️ 3 hours", 3),
    "halfday": ("🌤️ Half day (4 hrs)", 4),
    "fullday": ("☀️ Full day (8 hrs)", 8),
}


class JobFormatter:
    """
    Single responsibility: turn job data into text for the user.
    """

    @staticmethod
    def format_time(hhmm: Optional[str]) -> str:
        """"14:30" -> "2:30 PM"."""
        if not hhmm:
            return "-"
        try:
            hour, minute = (int(part) for part in hhmm.split(":"))
        except ValueError:
            return hhmm
        suffix = "AM" if hour < 12 else "PM"
        hour12 = hour % 12 or 12
        return f"{hour12}:{minute:02d} {suffix}"

    @staticmethod
    def format_duration(hours: Optional[float]) -> str:
        if hours is None:
            return "-"
        if hours < 1:
            return f"{int(hours * 60)} minutes"
        if hours == 4:
            return "Half day (4 hrs)"
        if hours == 8:
            return "Full day (8 hrs)"
        return f"{hours:g} hour" + ("" if hours == 1 else "s")

    @staticmethod
    def format_pay(amount: Optional[int]) -> str:
        return f"₹{amount:,}" if amount is not None else "-"

    @staticmethod
    def format_draft_summary(draft: JobPostDraft) -> str:
        """Summary shown at the confirmation step."""
        lines = [
            "📋 *Check your job post*",
            "",
            f"🛠️ Type: *{draft.job_type_label}*",
            f"📝 Title: {draft.title}",
        ]
        if draft.description:
            lines.append(f"📄 Details: {draft.description}")
        location = draft.location_name or "-"
        if draft.has_coordinates:
            location += " (📍 pinned)"
        lines += [
            f"📍 Place: {location}",
            f"📅 Date: {TimezoneHelper.format_date_for_confirmation(draft.job_date) if draft.job_date else '-'}",
            f"⏰ Time: {JobFormatter.format_time(draft.job_time)}",
            f"⏱️ Duration: {JobFormatter.format_duration(draft.duration_hours)}",
            f"💰 Pay: *{JobFormatter.format_pay(draft.pay_amount)}*",
        ]
        if draft.special_instructions:
            lines.append(f"📌 Note: _{draft.special_instructions}_")
        return "\n".join(lines)

    @staticmethod
    def format_job_details(job: Dict) -> str:
        """Job card shown to a worker before applying."""
        icon = job.get("categoryIcon") or "📋"
        job_type = job.get("categoryName") or job.get("customCategory") or "Job"
        applications = job.get("applicationsCount") or 0

        message = (
            "👷 *JOB DETAILS*\n\n"
            f"{icon} *{job_type}* - {job.get('title', '')}\n"
            f"📍 {job.get('locationName') or '-'}\n\n"
            f"📅 {TimezoneHelper.format_date_for_confirmation(job['jobDate']) if job.get('jobDate') else '-'}"
            f" ⏰ {JobFormatter.format_time(job.get('jobTime'))}\n"
            f"⏱️ {JobFormatter.format_duration(job.get('durationHours'))}\n"
            f"💰 *{JobFormatter.format_pay(job.get('payAmount'))}*"
        )
        if applications:
            message += f"\n👥 *{applications}* workers already applied"
        else:
            message += "\n🎯 Be the first to apply!"
        if job.get("description"):
            message += f"\n\n📝 {job['description']}"
        if job.get("specialInstructions"):
            message += f"\n\n📌 _{job['specialInstructions']}_"
        return message

    @staticmethod
    def format_job_row(job: Dict) -> Dict:
        """List row for the job browser (title 24, description 72)."""
        icon = job.get("categoryIcon") or "📋"
        when = TimezoneHelper.format_date_for_whatsapp(job["jobDate"]) if job.get("jobDate") else ""
        description = f"{JobFormatter.format_pay(job.get('payAmount'))} • {job.get('locationName') or ''} • {when}"
        return {
            "title": f"{icon} {job.get('title', 'Job')}",
            "description": description.strip(" •"),
        }
