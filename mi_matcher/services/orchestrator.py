from __future__ import annotations

import logging

from mi_matcher.errors import UNKNOWN_ERROR_TYPE, MatcherError
from mi_matcher.models.config_models import MatcherConfig
from mi_matcher.models.merge_result import MergeResult
from .extractor import extract_billing_data
from .merger import merge_mi_table
from .observers import ExtractionObserver

"""Service orchestration: billing extraction followed by the MI merge.

process_files() is the call boundary. Every fatal error is converted into a
MergeResult with success=False, so callers only check ``result.success``.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "process_files",
]


def process_files(
    mi_table: bytes,
    mi_name: str,
    billing_archive: bytes,
    config: MatcherConfig | None = None,
    observer: ExtractionObserver | None = None,
) -> MergeResult:
    """Run extraction then merge.

    Args:
        mi_table: MI workbook / CSV bytes
        mi_name: MI file name (selects CSV vs spreadsheet decoding)
        billing_archive: billing ZIP bytes
        config: Matcher configuration (defaults when None)
        observer: Receives billing member events

    Returns:
        MergeResult; on failure ``error`` / ``error_type`` are set and the table is empty
    """
    cfg = config if config is not None else MatcherConfig()
    try:
        dictionary = extract_billing_data(billing_archive, cfg, observer)
        return merge_mi_table(mi_table, mi_name, dictionary, cfg)
    except MatcherError as e:
        return MergeResult.failure(str(e), e.error_type)
    except Exception as e:
        # 想定外の例外も呼び出し側へは構造化結果で返す
        logger.debug("unexpected processing error", exc_info=True)
        return MergeResult.failure(str(e) or "Unknown error occurred", UNKNOWN_ERROR_TYPE)
