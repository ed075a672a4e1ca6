# Domain Scheduling Package
from .ports import SchedulingPolicy

__all__ = ["SchedulingPolicy"]
