from .worker_registration_flow import WorkerRegistrationFlow, WorkerRegistrationStep

__all__ = ["WorkerRegistrationFlow", "WorkerRegistrationStep"]
