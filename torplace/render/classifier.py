"""Map warning tags to a display category.

Upstream tags are not mutually exclusive, so the highest category wins:
tornado emergency, then PDS, then observed, then radar indicated.
Tags outside the known set never affect the result.
"""

from torplace.models.common import KNOWN_TAGS, WarningTag
from torplace.models.warning import Category, ClassifiedWarning, RawWarning

PRECEDENCE = [
    (WarningTag.TORNADO_EMERGENCY, Category.TORNADO_EMERGENCY),
    (WarningTag.PDS, Category.PDS),
    (WarningTag.OBSERVED, Category.OBSERVED),
]


def classify(warning: RawWarning) -> Category:
    for tag, category in PRECEDENCE:
        if tag in warning.tags:
            return category
    return Category.RADAR_INDICATED


def classify_warning(warning: RawWarning) -> ClassifiedWarning:
    return ClassifiedWarning(warning=warning, category=classify(warning))


def unrecognized_tags(warning: RawWarning) -> frozenset[str]:
    return warning.tags - KNOWN_TAGS
