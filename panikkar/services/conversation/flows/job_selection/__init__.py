from .job_selection_flow import JobSelectionFlow, JobSelectionStep

__all__ = ["JobSelectionFlow", "JobSelectionStep"]
