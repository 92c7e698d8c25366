"""Background tasks for the Trust Engine."""

from trust_engine.tasks.suspension_tasks import expire_suspensions

__all__ = ["expire_suspensions"]
