from .scheduler import MaintenanceScheduler

__all__ = ["MaintenanceScheduler"]
