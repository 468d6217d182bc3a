import logging
import re
from datetime import date
from typing import Optional, Tuple

from panikkar.core.timezone_helper import TimezoneHelper
from panikkar.schemas.job_post_schema import (
    CustomJobTypeSchema,
    JobDescriptionSchema,
    JobTitleSchema,
    LocationNameSchema,
    PaySchema,
    INSTRUCTIONS_MAX,
)
from panikkar.schemas.validation import validate_field

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"^(\d{1,2})(?:[:.](\d{2}))?\s*(am|pm|a\.m\.?|p\.m\.?)?$")


def parse_time_input(text: str) -> Optional[str]:
    """
    Parses a typed time into 24h "HH:MM".

    Accepts "9am", "9:30 pm", "9.30 p.m.", "14:00" and "07:45".
    A bare hour such as "9" is rejected, it could mean morning or evening.

    Returns:
        Optional[str]: "HH:MM", or None when the input is not a time
    """
    if not text:
        return None

    match = TIME_PATTERN.match(text.strip().lower())
    if not match:
        return None

    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    meridiem = match.group(3)

    if minute > 59:
        return None

    if meridiem:
        if hour < 1 or hour > 12:
            return None
        if meridiem.startswith("p") and hour != 12:
            hour += 12
        elif meridiem.startswith("a") and hour == 12:
            hour = 0
    else:
        if match.group(2) is None or hour > 23:
            return None

    return f"{hour:02d}:{minute:02d}"


class JobPostValidators:
    """
    Single responsibility: validation of job posting answers.
    """

    @staticmethod
    def validate_custom_job_type(text: str) -> Tuple[bool, str, Optional[str]]:
        return validate_field(CustomJobTypeSchema, "job_type", text or "")

    @staticmethod
    def validate_title(text: str) -> Tuple[bool, str, Optional[str]]:
        return validate_field(JobTitleSchema, "title", text or "")

    @staticmethod
    def validate_description(text: str) -> Tuple[bool, str, Optional[str]]:
        return validate_field(JobDescriptionSchema, "description", text or "")

    @staticmethod
    def validate_location_name(text: str) -> Tuple[bool, str, Optional[str]]:
        return validate_field(LocationNameSchema, "location_name", text or "")

    @staticmethod
    def validate_pay(value) -> Tuple[bool, str, Optional[int]]:
        return validate_field(PaySchema, "amount", value if value is not None else "")

    @staticmethod
    def validate_instructions(text: str) -> Tuple[bool, str, Optional[str]]:
        cleaned = (text or "").strip()
        if not cleaned:
            return (False, "Please type the instructions or tap Skip.", None)
        return (True, "", cleaned[:INSTRUCTIONS_MAX])

    @staticmethod
    def validate_job_date(text: str) -> Tuple[bool, str, Optional[date]]:
        """
        Validates a typed DD/MM/YYYY date. Past dates are rejected.

        Returns:
            Tuple[bool, str, Optional[date]]: (is_valid, error_message, parsed_date)
        """
        parsed = TimezoneHelper.parse_user_date(text or "")
        if parsed is None:
            return (False, "Please type the date as DD/MM/YYYY, for example 25/12/2025.", None)
        if parsed < TimezoneHelper.today():
            return (False, "That date has already passed. Please pick today or a later date.", None)
        return (True, "", parsed)

    @staticmethod
    def validate_time(text: str) -> Tuple[bool, str, Optional[str]]:
        parsed = parse_time_input(text)
        if parsed is None:
            logger.debug(f"Unrecognised time input: '{text}'")
            return (False, "Please type a time like 9:30 AM or 14:00.", None)
        return (True, "", parsed)
