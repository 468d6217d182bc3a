from .job_post_flow import JobPostFlow, JobPostStep

__all__ = ["JobPostFlow", "JobPostStep"]
