def mask_phone(phone: str) -> str:
    """Hides the middle of a phone number for logs: 919876543210 -> 919****210."""
    if not phone or len(phone) < 7:
        return "****"
    return f"{phone[:3]}****{phone[-3:]}"
