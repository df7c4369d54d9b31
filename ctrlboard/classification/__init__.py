"""Internal-work classification for ctrlboard.

Decides per time record whether it is internal work, absence or billable,
using an immutable admin-configured mapping plus legacy fallbacks.
"""

from ctrlboard.classification.classifier import classify, is_excluded, is_internal, quick_detect, tag_records
from ctrlboard.classification.mapping import ClassificationMapping, ConfigurationError, load_mapping

__all__ = [
    "ClassificationMapping",
    "ConfigurationError",
    "classify",
    "is_excluded",
    "is_internal",
    "load_mapping",
    "quick_detect",
    "tag_records",
]
