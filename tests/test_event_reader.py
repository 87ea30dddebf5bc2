"""Tests for the streaming XML event reader"""

import io

import pytest

from healthkit_sqlite.classifier import ElementKind
from healthkit_sqlite.services.event_reader import iter_events
from healthkit_sqlite.utils.errors import StructuralError

from fixtures import parse_events


class TestIterEvents:

    def test_start_and_end_in_document_order(self):
        xml = '<HealthData>\n<Record type="A" value="1"/>\n<Workout workoutActivityType="W"></Workout>\n</HealthData>'

        events = parse_events(xml)

        assert [(e.event, e.tag) for e in events] == [
            ('start', 'HealthData'),
            ('start', 'Record'),
            ('end', 'Record'),
            ('start', 'Workout'),
            ('end', 'Workout'),
            ('end', 'HealthData'),
        ]

    def test_attributes_and_line(self):
        xml = '<HealthData>\n<Record type="A" value="1"/>\n</HealthData>'

        start = parse_events(xml)[1]

        assert start.kind is ElementKind.RECORD
        assert start.attributes == {'type': 'A', 'value': '1'}
        assert start.line == 2

    def test_end_events_carry_no_attributes(self):
        events = parse_events('<Record type="A"/>')
        assert events[-1].event == 'end'
        assert events[-1].attributes == {}

    def test_namespaced_tags_are_reported_by_local_name(self):
        events = parse_events('<h:HealthData xmlns:h="urn:h"><h:Location latitude="1" longitude="2"/></h:HealthData>')

        assert events[1].tag == 'Location'
        assert events[1].kind is ElementKind.LOCATION

    def test_unknown_elements_classify_as_other(self):
        events = parse_events('<HealthData><ExportDate value="2024-01-10"/></HealthData>')
        assert {e.kind for e in events} == {ElementKind.OTHER}

    def test_attribute_entities_are_decoded(self):
        events = parse_events('<Record type="A" sourceName="Bob&apos;s &amp; Watch"/>')
        assert events[0].attributes['sourceName'] == "Bob's & Watch"

    def test_malformed_document_raises_structural_error(self):
        with pytest.raises(StructuralError) as exc_info:
            parse_events('<HealthData>\n<Record type="A">\n</Workout>\n</HealthData>')

        assert exc_info.value.line == 3
        assert exc_info.value.code == 'STRUCTURAL_ERROR'

    def test_truncated_document_raises_after_complete_elements(self):
        xml = b'<HealthData><Record type="A"/><Record type="B"'
        seen = []

        with pytest.raises(StructuralError):
            for event in iter_events(io.BytesIO(xml)):
                seen.append((event.event, event.tag))

        assert ('end', 'Record') in seen

    def test_reads_from_file_path(self, tmp_path):
        path = tmp_path / 'export.xml'
        path.write_text('<HealthData><Record type="A"/></HealthData>', encoding='utf-8')

        events = list(iter_events(str(path)))

        assert len(events) == 4
