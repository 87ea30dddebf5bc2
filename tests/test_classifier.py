"""Tests for the element classifier"""

import pytest
from lxml import etree

from healthkit_sqlite.classifier import ElementKind, classify, local_name


class TestClassify:
    """Test tag -> ElementKind mapping"""

    @pytest.mark.parametrize('tag, kind', [
        ('Record', ElementKind.RECORD),
        ('Workout', ElementKind.WORKOUT),
        ('ActivitySummary', ElementKind.ACTIVITY_SUMMARY),
        ('MetadataEntry', ElementKind.METADATA_ENTRY),
        ('FileReference', ElementKind.FILE_REFERENCE),
        ('WorkoutEvent', ElementKind.WORKOUT_EVENT),
        ('WorkoutStatistics', ElementKind.WORKOUT_STATISTICS),
        ('WorkoutRoute', ElementKind.WORKOUT_ROUTE),
        ('Location', ElementKind.LOCATION),
    ])
    def test_known_tags(self, tag, kind):
        assert classify(tag) is kind

    @pytest.mark.parametrize('tag', [
        'HealthData', 'ExportDate', 'Me', 'Correlation', 'ClinicalRecord',
        'record', 'RECORD', '', 'Other',
    ])
    def test_unknown_tags_are_other(self, tag):
        assert classify(tag) is ElementKind.OTHER

    def test_namespace_is_ignored(self):
        assert classify('{http://example.com/health}Workout') is ElementKind.WORKOUT

    def test_non_string_tag_is_other(self):
        # lxml uses factory functions as the tag of comments and PIs
        assert classify(etree.Comment) is ElementKind.OTHER
        assert classify(None) is ElementKind.OTHER

    def test_classification_is_idempotent(self):
        tags = ['Record', 'Workout', 'Foo', 'Location']
        first = [classify(tag) for tag in tags]
        second = [classify(tag) for tag in tags]
        assert first == second


def test_local_name():
    assert local_name('{urn:x}trkpt') == 'trkpt'
    assert local_name('trkpt') == 'trkpt'
