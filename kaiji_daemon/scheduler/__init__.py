# Scheduler Package
from .jobs import ScheduledJobs

__all__ = ['ScheduledJobs']
