import logging
from typing import Any, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


def validate_field(schema: Type[BaseModel], field: str, value: Any) -> Tuple[bool, str, Optional[Any]]:
    """
    Validates one user answer with a single-field schema.

    Args:
        schema: Pydantic schema declaring the field
        field: Field name inside the schema
        value: Raw user input

    Returns:
        Tuple[bool, str, Optional[Any]]: (is_valid, error_message, cleaned_value)
    """
    try:
        cleaned = getattr(schema(**{field: value}), field)
        logger.debug(f"{schema.__name__}.{field} validated")
        return (True, "", cleaned)
    except ValidationError as e:
        error_msg = e.errors()[0]["msg"]
        logger.debug(f"{schema.__name__}.{field} rejected: {error_msg}")
        return (False, error_msg, None)
