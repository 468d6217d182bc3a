import logging
from typing import Dict, Optional, Tuple

from pydantic import ValidationError

from panikkar.models.incoming import IncomingMessage
from panikkar.schemas.registration_schema import NameSchema, SharedLocationSchema
from panikkar.schemas.validation import validate_field

logger = logging.getLogger(__name__)


class RegistrationValidators:
    """
    Single responsibility: validation of registration answers.
    Shared by the user and worker registration flows.
    """

    @staticmethod
    def validate_name(name: str) -> Tuple[bool, str, Optional[str]]:
        """
        Validates a name using NameSchema.

        Returns:
            Tuple[bool, str, Optional[str]]: (is_valid, error_message, cleaned_value)
        """
        return validate_field(NameSchema, "name", name or "")

    @staticmethod
    def validate_location(message: IncomingMessage) -> Tuple[bool, str, Optional[Dict]]:
        """
        Validates a shared WhatsApp location.

        Returns:
            Tuple[bool, str, Optional[Dict]]: (is_valid, error_message, {"latitude", "longitude", "address"})
        """
        if not message.has_location:
            return (False, "Please share your location using 📎 → Location.", None)
        try:
            location = SharedLocationSchema(
                latitude=message.latitude,
                longitude=message.longitude,
                name=message.location_name,
                address=message.location_address,
            )
        except ValidationError as e:
            logger.warning(f"Invalid coordinates received: {e.errors()[0]['msg']}")
            return (False, "That location doesn't look right. Please share it again.", None)

        return (True, "", {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "address": location.address or location.name,
        })
