# Application Scheduling Package
from .legacy import migrate_legacy_record
from .sm2 import Sm2Policy, review, validate_grade

__all__ = ["Sm2Policy", "review", "validate_grade", "migrate_legacy_record"]
