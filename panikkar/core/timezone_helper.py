import logging
from datetime import date, datetime, timedelta
from typing import Optional
import pytz
from panikkar.core.config import get_settings

logger = logging.getLogger(__name__)

# India Standard Time (UTC+5:30) unless APP_TIMEZONE says otherwise
LOCAL_TZ = pytz.timezone(get_settings().TIMEZONE)

class TimezoneHelper:
    """
    Helper for job dates in ISO format (2025-05-27) in the marketplace time zone.
    Single responsibility: local "now", and ISO date parsing/formatting.
    """

    @staticmethod
    def now() -> datetime:
        """Current local date and time (timezone aware)."""
        return datetime.now(LOCAL_TZ)

    @staticmethod
    def today() -> date:
        return TimezoneHelper.now().date()

    @staticmethod
    def tomorrow() -> date:
        return TimezoneHelper.today() + timedelta(days=1)

    @staticmethod
    def parse_user_date(text: str) -> Optional[date]:
        """
        Parses a date typed by the user.

        Args:
            text: Date as DD/MM/YYYY (also accepts DD-MM-YYYY)

        Returns:
            date or None when the text is not a valid date
        """
        cleaned = text.strip().replace("-", "/").replace(".", "/")
        try:
            return datetime.strptime(cleaned, "%d/%m/%Y").date()
        except ValueError:
            return None

    @staticmethod
    def format_date_for_whatsapp(iso_date: str) -> str:
        """
        Converts an ISO date into the short form used in lists and buttons.

        Args:
            iso_date: Date in ISO format "2025-05-27"

        Returns:
            str: "27/05 - Tue"
        """
        try:
            dt = datetime.strptime(iso_date, "%Y-%m-%d")
        except ValueError:
            return iso_date
        return f"{dt.strftime('%d/%m')} - {dt.strftime('%a')}"

    @staticmethod
    def format_date_for_confirmation(iso_date: str) -> str:
        """
        Formats an ISO date for confirmation summaries.

        Args:
            iso_date: Date in ISO format "2025-05-27"

        Returns:
            str: "Today (27/05/2025)", "Tomorrow (28/05/2025)" or "Thursday, 29/05/2025"
        """
        try:
            dt = datetime.strptime(iso_date, "%Y-%m-%d")
        except ValueError:
            return iso_date

        day = dt.strftime('%d/%m/%Y')
        if TimezoneHelper.is_date_today(iso_date):
            return f"Today ({day})"
        if TimezoneHelper.is_date_tomorrow(iso_date):
            return f"Tomorrow ({day})"
        return f"{dt.strftime('%A')}, {day}"

    @staticmethod
    def is_date_today(iso_date: str) -> bool:
        try:
            return datetime.strptime(iso_date, "%Y-%m-%d").date() == TimezoneHelper.today()
        except ValueError:
            return False

    @staticmethod
    def is_date_tomorrow(iso_date: str) -> bool:
        try:
            return datetime.strptime(iso_date, "%Y-%m-%d").date() == TimezoneHelper.tomorrow()
        except ValueError:
            return False

