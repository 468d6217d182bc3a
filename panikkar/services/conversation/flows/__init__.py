"""
Conversation flows of the WhatsApp bot.

Flows with several helpers live in their own package (registration/,
job_post/, ...); the main menu is a single module.

Usage:
    from panikkar.services.conversation.flows import JobPostFlow, FLOW_CLASSES
"""

from .base_flow import BaseFlow
from .step import (
    FlowDefinitionError,
    InvalidTransitionError,
    Outcome,
    StepResult,
    StepSpec,
)

from .main_menu_flow import MainMenuFlow, MainMenuStep
from .registration import RegistrationFlow, RegistrationStep
from .worker_registration import WorkerRegistrationFlow, WorkerRegistrationStep
from .job_post import JobPostFlow, JobPostStep
from .job_application import JobApplicationFlow, JobApplicationStep
from .job_selection import JobSelectionFlow, JobSelectionStep
from .job_execution import JobExecutionFlow, JobExecutionStep

# Registered by ConversationManager, one instance per flow type
FLOW_CLASSES = (
    MainMenuFlow,
    RegistrationFlow,
    WorkerRegistrationFlow,
    JobPostFlow,
    JobApplicationFlow,
    JobSelectionFlow,
    JobExecutionFlow,
)

__all__ = [
    "BaseFlow",
    "FlowDefinitionError",
    "InvalidTransitionError",
    "Outcome",
    "StepResult",
    "StepSpec",
    "MainMenuFlow",
    "MainMenuStep",
    "RegistrationFlow",
    "RegistrationStep",
    "WorkerRegistrationFlow",
    "WorkerRegistrationStep",
    "JobPostFlow",
    "JobPostStep",
    "JobApplicationFlow",
    "JobApplicationStep",
    "JobSelectionFlow",
    "JobSelectionStep",
    "JobExecutionFlow",
    "JobExecutionStep",
    "FLOW_CLASSES",
]
