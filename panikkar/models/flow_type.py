from enum import Enum


class FlowType(str, Enum):
    """Conversational journeys a session can be in. One active flow per session."""

    MAIN_MENU = "main_menu"
    REGISTRATION = "registration"
    WORKER_REGISTRATION = "job_worker_register"
    JOB_POST = "job_post"
    JOB_APPLICATION = "job_application"
    JOB_SELECTION = "job_selection"
    JOB_EXECUTION = "job_execution"

    @property
    def label(self) -> str:
        return {
            FlowType.MAIN_MENU: "Main Menu",
            FlowType.REGISTRATION: "Registration",
            FlowType.WORKER_REGISTRATION: "Worker Registration",
            FlowType.JOB_POST: "Post a Job",
            FlowType.JOB_APPLICATION: "Find Jobs",
            FlowType.JOB_SELECTION: "Choose a Worker",
            FlowType.JOB_EXECUTION: "Job in Progress",
        }[self]

    @property
    def requires_registration(self) -> bool:
        return self not in (FlowType.MAIN_MENU, FlowType.REGISTRATION)
