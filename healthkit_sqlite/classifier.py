"""Map export.xml tag names to the element kinds the converter understands"""

from enum import Enum


class ElementKind(Enum):
    RECORD = 'Record'
    WORKOUT = 'Workout'
    ACTIVITY_SUMMARY = 'ActivitySummary'
    METADATA_ENTRY = 'MetadataEntry'
    FILE_REFERENCE = 'FileReference'
    WORKOUT_EVENT = 'WorkoutEvent'
    WORKOUT_STATISTICS = 'WorkoutStatistics'
    WORKOUT_ROUTE = 'WorkoutRoute'
    LOCATION = 'Location'
    OTHER = 'Other'


TAG_KINDS = {kind.value: kind for kind in ElementKind if kind is not ElementKind.OTHER}


def local_name(tag):
    """Strip an lxml namespace prefix ('{uri}name' -> 'name')"""
    if isinstance(tag, str) and tag.startswith('{'):
        return tag.rpartition('}')[2]
    return tag


def classify(tag):
    """Classify an element by its tag name

    Unknown tags (and non-string tags such as lxml comment markers)
    classify as OTHER.

    Args:
        tag: Element tag name

    Returns:
        ElementKind
    """
    if not isinstance(tag, str):
        return ElementKind.OTHER
    return TAG_KINDS.get(local_name(tag), ElementKind.OTHER)
