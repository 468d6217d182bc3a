from .registration_flow import RegistrationFlow, RegistrationStep

__all__ = ["RegistrationFlow", "RegistrationStep"]
