"""Domain models for the MI / billing matcher.

This package contains the dataclasses passed between the extractor, the
merger, the result writer and the CLI.
"""

from .archive_member import ArchiveMember, MemberStatus
from .billing import BillingDictionary, BillingRecord
from .config_models import MatcherConfig, OutputConfig
from .error_record import ErrorRecord
from .merge_result import MergeResult

__all__ = [
    # Configuration models
    "MatcherConfig",
    "OutputConfig",
    # Processing models
    "ArchiveMember",
    "MemberStatus",
    "BillingRecord",
    "BillingDictionary",
    "MergeResult",
    "ErrorRecord",
]
