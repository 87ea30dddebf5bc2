"""Aggregation state machine turning classified XML events into rows

Records and ActivitySummaries map to one row each. Workouts are
composites: their events, statistics, metadata and route points are
buffered on an explicit frame stack until the Workout closes, then
folded into a single row with JSON columns.
"""

import logging
from enum import Enum

from healthkit_sqlite.classifier import ElementKind
from healthkit_sqlite.geometry import build_line_string
from healthkit_sqlite.models import Row
from healthkit_sqlite.utils.database_helpers import finite_float, typed_json_object
from healthkit_sqlite.utils.errors import RouteFileError, StructuralError, ValidationError

logger = logging.getLogger(__name__)


WORKOUT_TABLE = 'Workout'
ACTIVITY_SUMMARY_TABLE = 'ActivitySummary'
METADATA_COLUMN_PREFIX = 'metadata_'

REQUIRED_ATTRIBUTES = {
    ElementKind.RECORD: ('type',),
    ElementKind.WORKOUT: ('workoutActivityType',),
    ElementKind.METADATA_ENTRY: ('key', 'value'),
    ElementKind.FILE_REFERENCE: ('path',),
    ElementKind.WORKOUT_STATISTICS: ('type',),
    ElementKind.LOCATION: ('latitude', 'longitude'),
}


class AggregatorState(Enum):
    IDLE = 'Idle'
    IN_RECORD = 'InRecord'
    IN_WORKOUT = 'InWorkout'
    IN_WORKOUT_ROUTE = 'InWorkoutRoute'
    IN_ACTIVITY_SUMMARY = 'InActivitySummary'


class RecordBuffer:
    def __init__(self, attributes):
        self.attributes = attributes
        self.metadata = {}


class SummaryBuffer:
    def __init__(self, attributes):
        self.attributes = attributes


class WorkoutBuffer:
    def __init__(self, attributes):
        self.attributes = attributes
        self.metadata = {}
        self.events = []
        self.statistics = {}
        self.geometry = None


class RouteBuffer:
    def __init__(self):
        self.points = []
        self.file_paths = []


class DiscardedBuffer:
    """Marks an element dropped by validation; its children are ignored"""


class Frame:
    __slots__ = ('kind', 'tag', 'line', 'buffer')

    def __init__(self, kind, tag, line, buffer=None):
        self.kind = kind
        self.tag = tag
        self.line = line
        self.buffer = buffer


class ElementAggregator:
    """Consumes StreamEvents in document order and emits finished Rows

    Per-element validation problems are collected in `errors` and the
    element is dropped; nesting violations raise StructuralError.
    """

    def __init__(self, route_loader=None):
        """Initialize the aggregator

        Args:
            route_loader: Optional callable(path) -> list of (lon, lat, ele)
                resolving a WorkoutRoute FileReference. Raises RouteFileError.
        """
        self._stack = []
        self._route_loader = route_loader
        self.errors = []

    @property
    def state(self):
        """Current AggregatorState, derived from the innermost open composite"""
        for frame in reversed(self._stack):
            buffer = frame.buffer
            if isinstance(buffer, RouteBuffer):
                return AggregatorState.IN_WORKOUT_ROUTE
            if isinstance(buffer, WorkoutBuffer):
                return AggregatorState.IN_WORKOUT
            if isinstance(buffer, RecordBuffer):
                return AggregatorState.IN_RECORD
            if isinstance(buffer, SummaryBuffer):
                return AggregatorState.IN_ACTIVITY_SUMMARY
        return AggregatorState.IDLE

    @property
    def depth(self):
        return len(self._stack)

    def process(self, event):
        """Feed one StreamEvent

        Returns:
            Row when the event completes one, otherwise None
        """
        if event.event == 'start':
            self.start(event.kind, event.tag, event.attributes, event.line)
            return None
        return self.end(event.tag, event.line)

    def start(self, kind, tag, attributes, line=None):
        """Handle an element-open event"""
        buffer = None

        if kind is ElementKind.RECORD:
            buffer = RecordBuffer(attributes) if self._validate(kind, tag, attributes, line) else DiscardedBuffer()

        elif kind is ElementKind.WORKOUT:
            if self._nearest(WorkoutBuffer) is not None:
                raise StructuralError("<Workout> nested inside another <Workout>", line=line)
            buffer = WorkoutBuffer(attributes)

        elif kind is ElementKind.ACTIVITY_SUMMARY:
            buffer = SummaryBuffer(attributes)

        elif kind is ElementKind.METADATA_ENTRY:
            self._add_metadata(tag, attributes, line)

        elif kind is ElementKind.WORKOUT_EVENT:
            workout = self._nearest(WorkoutBuffer)
            if workout is not None:
                workout.events.append(attributes)

        elif kind is ElementKind.WORKOUT_STATISTICS:
            workout = self._nearest(WorkoutBuffer)
            if workout is not None and self._validate(kind, tag, attributes, line):
                # Last occurrence of a statistics type wins
                workout.statistics[attributes['type']] = attributes

        elif kind is ElementKind.WORKOUT_ROUTE:
            if self._nearest(WorkoutBuffer) is None:
                raise StructuralError("<WorkoutRoute> outside of a <Workout>", line=line)
            buffer = RouteBuffer()

        elif kind is ElementKind.LOCATION:
            route = self._nearest(RouteBuffer)
            if route is None:
                raise StructuralError("<Location> outside of a <WorkoutRoute>", line=line)
            self._add_location(route, tag, attributes, line)

        elif kind is ElementKind.FILE_REFERENCE:
            route = self._nearest(RouteBuffer)
            if route is not None and self._validate(kind, tag, attributes, line):
                route.file_paths.append((attributes['path'], line))

        elif self.state is AggregatorState.IDLE:
            logger.debug("Skipping <%s> at line %s", tag, line)

        self._stack.append(Frame(kind, tag, line, buffer))

    def end(self, tag, line=None):
        """Handle an element-close event

        Returns:
            Row if the closed element completes one, otherwise None
        """
        if not self._stack:
            raise StructuralError(f"unexpected </{tag}> with no open element", line=line)

        frame = self._stack.pop()
        if frame.tag != tag:
            raise StructuralError(
                f"</{tag}> does not close <{frame.tag}> opened at line {frame.line}", line=line
            )

        buffer = frame.buffer
        if isinstance(buffer, RecordBuffer):
            columns = dict(buffer.attributes)
            columns.update(buffer.metadata)
            return Row.build(buffer.attributes['type'], columns, frame.line)

        if isinstance(buffer, SummaryBuffer):
            return Row.build(ACTIVITY_SUMMARY_TABLE, buffer.attributes, frame.line)

        if isinstance(buffer, WorkoutBuffer):
            return self._finish_workout(frame, buffer)

        if isinstance(buffer, RouteBuffer):
            self._finish_route(buffer)

        return None

    def finish(self):
        """Check that the stream ended with every element closed

        Raises:
            StructuralError: If elements are still open (truncated stream)
        """
        if self._stack:
            frame = self._stack[-1]
            raise StructuralError(
                f"stream ended with <{frame.tag}> (line {frame.line}) still open", line=frame.line
            )

    def _finish_workout(self, frame, workout):
        if not self._validate(ElementKind.WORKOUT, frame.tag, workout.attributes, frame.line):
            return None

        columns = dict(workout.attributes)
        columns.update(workout.metadata)
        columns['workoutEvents'] = [typed_json_object(event) for event in workout.events]
        columns['workoutStatistics'] = {
            stat_type: typed_json_object(stat) for stat_type, stat in workout.statistics.items()
        }
        if workout.geometry is not None:
            columns['geometry'] = workout.geometry

        return Row.build(WORKOUT_TABLE, columns, frame.line)

    def _finish_route(self, route):
        """Fold a closed WorkoutRoute into the enclosing Workout's geometry

        A route without any points leaves an earlier route's geometry in
        place, so the last route with at least one point wins.
        """
        points = list(route.points)

        for path, line in route.file_paths:
            if self._route_loader is None:
                logger.debug("No route source for %s, skipping", path)
                continue
            try:
                points.extend(self._route_loader(path))
            except RouteFileError as e:
                e.line = line
                self._record(e)

        geometry = build_line_string(points)
        if geometry is not None:
            self._nearest(WorkoutBuffer).geometry = geometry

    def _add_metadata(self, tag, attributes, line):
        owner = None
        for frame in reversed(self._stack):
            if isinstance(frame.buffer, (RecordBuffer, WorkoutBuffer, DiscardedBuffer)):
                owner = frame.buffer
                break

        if owner is None or isinstance(owner, DiscardedBuffer):
            return
        if self._validate(ElementKind.METADATA_ENTRY, tag, attributes, line):
            owner.metadata[METADATA_COLUMN_PREFIX + attributes['key']] = attributes['value']

    def _add_location(self, route, tag, attributes, line):
        if not self._validate(ElementKind.LOCATION, tag, attributes, line):
            return

        coordinates = []
        for field in ('longitude', 'latitude'):
            try:
                coordinates.append(finite_float(attributes[field]))
            except ValueError:
                self._record(ValidationError(tag, field, attributes, line,
                                             reason="non-numeric or non-finite attribute"))
                return

        altitude = attributes.get('altitude')
        try:
            elevation = finite_float(altitude) if altitude else None
        except ValueError:
            elevation = None

        route.points.append((coordinates[0], coordinates[1], elevation))

    def _nearest(self, buffer_type):
        for frame in reversed(self._stack):
            if isinstance(frame.buffer, buffer_type):
                return frame.buffer
        return None

    def _validate(self, kind, tag, attributes, line):
        for field in REQUIRED_ATTRIBUTES.get(kind, ()):
            if not attributes.get(field):
                self._record(ValidationError(tag, field, attributes, line))
                return False
        return True

    def _record(self, error):
        logger.warning(error.message)
        self.errors.append(error)
