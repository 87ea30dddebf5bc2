"""Test data fixtures for export documents, records, workouts and routes"""

import io
import zipfile
from pathlib import Path
from xml.sax.saxutils import quoteattr

from healthkit_sqlite.services.event_reader import iter_events


HEART_RATE = 'HKQuantityTypeIdentifierHeartRate'
STEP_COUNT = 'HKQuantityTypeIdentifierStepCount'


def get_sample_record(record_type=HEART_RATE, **overrides):
    """Get sample Record attributes

    Args:
        record_type: Record type (destination table)
        **overrides: Override any default values (None removes the attribute)

    Returns:
        Dictionary of attribute name -> raw string value
    """
    record = {
        'type': record_type,
        'sourceName': 'Apple Watch',
        'sourceVersion': '10.1',
        'unit': 'count/min',
        'creationDate': '2024-01-10 08:05:00 +0100',
        'startDate': '2024-01-10 08:00:00 +0100',
        'endDate': '2024-01-10 08:00:00 +0100',
        'value': '72',
    }

    record.update(overrides)
    return {key: value for key, value in record.items() if value is not None}


def get_sample_workout(activity_type='HKWorkoutActivityTypeRunning', **overrides):
    """Get sample Workout attributes

    Args:
        activity_type: workoutActivityType value
        **overrides: Override any default values (None removes the attribute)

    Returns:
        Dictionary of attribute name -> raw string value
    """
    workout = {
        'workoutActivityType': activity_type,
        'duration': '30.5',
        'durationUnit': 'min',
        'sourceName': 'Apple Watch',
        'creationDate': '2024-01-10 08:35:00 +0100',
        'startDate': '2024-01-10 08:00:00 +0100',
        'endDate': '2024-01-10 08:30:30 +0100',
    }

    workout.update(overrides)
    return {key: value for key, value in workout.items() if value is not None}


def get_sample_activity_summary(**overrides):
    """Get sample ActivitySummary attributes"""
    summary = {
        'dateComponents': '2024-01-10',
        'activeEnergyBurned': '512.3',
        'activeEnergyBurnedGoal': '600',
        'activeEnergyBurnedUnit': 'kcal',
        'appleExerciseTime': '42',
        'appleStandHours': '11',
    }

    summary.update(overrides)
    return {key: value for key, value in summary.items() if value is not None}


def element(tag, attributes=None, *children):
    """Render one XML element with escaped attributes and child markup"""
    attrs = ''.join(f' {name}={quoteattr(value)}' for name, value in (attributes or {}).items())
    if not children:
        return f'<{tag}{attrs}/>'
    return f'<{tag}{attrs}>' + ''.join(children) + f'</{tag}>'


def export_xml(*children):
    """Wrap elements into a complete export.xml document"""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<HealthData locale="en_US">\n'
        + '\n'.join(children)
        + '\n</HealthData>\n'
    )


def location(longitude, latitude, altitude=None):
    attributes = {'date': '2024-01-10 08:00:00 +0100',
                  'latitude': str(latitude), 'longitude': str(longitude)}
    if altitude is not None:
        attributes['altitude'] = str(altitude)
    return element('Location', attributes)


def gpx_document(points, namespace='http://www.topografix.com/GPX/1/1'):
    """Render a GPX track from (lon, lat[, ele]) tuples"""
    xmlns = f' xmlns="{namespace}"' if namespace else ''
    trkpts = []
    for point in points:
        ele = f'<ele>{point[2]}</ele>' if len(point) > 2 else ''
        trkpts.append(f'<trkpt lon="{point[0]}" lat="{point[1]}">{ele}<time>2024-01-10T07:00:00Z</time></trkpt>')
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<gpx version="1.1" creator="Apple Health Export"{xmlns}>'
        '<trk><name>Route</name><trkseg>' + ''.join(trkpts) + '</trkseg></trk></gpx>'
    )


def get_scenario_xml():
    """HeartRate record, a Workout with one event and a two-point route, one ActivitySummary"""
    return export_xml(
        element('Record', get_sample_record()),
        element(
            'Workout', get_sample_workout(),
            element('WorkoutEvent', {'type': 'HKWorkoutEventTypePause',
                                     'date': '2024-01-10 08:10:00 +0100',
                                     'duration': '1.5'}),
            element('WorkoutRoute', {'sourceName': 'Apple Watch'},
                    location(13.40, 52.52), location(13.41, 52.53)),
        ),
        element('ActivitySummary', get_sample_activity_summary()),
    )


def write_export_zip(path, xml, routes=None, root='apple_health_export'):
    """Write an export.zip containing export.xml and optional route files

    Args:
        path: Destination file path
        xml: export.xml content
        routes: Optional dictionary of FileReference path -> GPX content
        root: Top-level directory inside the archive

    Returns:
        The path as a string
    """
    with zipfile.ZipFile(path, 'w') as archive:
        archive.writestr(f'{root}/export.xml', xml)
        for route_path, content in (routes or {}).items():
            archive.writestr(f"{root}/{route_path.lstrip('/')}", content)
    return str(path)


def parse_events(xml):
    """Parse an XML string into a list of StreamEvents"""
    return list(iter_events(io.BytesIO(xml.encode('utf-8'))))


def corrupt_zip_member(path, old, new):
    """Overwrite bytes inside a stored archive member so its CRC-32 no longer matches

    Args:
        path: Archive written by write_export_zip (members are stored uncompressed)
        old: Byte string occurring exactly once in the archive
        new: Replacement of the same length
    """
    data = Path(path).read_bytes()
    assert len(old) == len(new) and data.count(old) == 1
    Path(path).write_bytes(data.replace(old, new))
