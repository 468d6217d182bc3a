from .job_application_flow import JobApplicationFlow, JobApplicationStep

__all__ = ["JobApplicationFlow", "JobApplicationStep"]
