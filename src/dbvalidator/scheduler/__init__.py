"""
Scheduled validation.

This submodule provides APScheduler-based scheduling for periodic
validation runs and the job function the scheduler executes.
"""

from .jobs import run_tables, validation_job
from .scheduler import ValidationScheduler

__all__ = [
    'ValidationScheduler',
    'validation_job',
    'run_tables',
]
