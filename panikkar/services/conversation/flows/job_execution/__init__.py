from .job_execution_flow import JobExecutionFlow, JobExecutionStep

__all__ = ["JobExecutionFlow", "JobExecutionStep"]
