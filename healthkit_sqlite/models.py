"""Value types passed between the converter stages"""

from collections import namedtuple
from dataclasses import dataclass, field


# One structural event from the XML stream.
# event: 'start' or 'end'; kind: ElementKind; attributes: dict (empty on 'end')
StreamEvent = namedtuple('StreamEvent', ['event', 'kind', 'tag', 'attributes', 'line'])


class Row(namedtuple('Row', ['table', 'columns', 'line'])):
    """A finished row: destination table plus (column, value) pairs

    columns is a tuple of pairs so a Row cannot be changed once emitted.
    Values are raw attribute strings, or dict/list for derived JSON columns.
    """

    __slots__ = ()

    @classmethod
    def build(cls, table, columns, line=None):
        return cls(table, tuple(columns.items()), line)

    def as_dict(self):
        return dict(self.columns)


@dataclass
class ConversionSummary:
    """Outcome of one conversion run"""

    rows_per_table: dict = field(default_factory=dict)
    errors: list = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def total_rows(self):
        return sum(self.rows_per_table.values())

    @property
    def error_count(self):
        return len(self.errors)

    def to_dict(self):
        return {
            'rows_per_table': dict(self.rows_per_table),
            'total_rows': self.total_rows,
            'error_count': self.error_count,
            'errors': [error.to_dict() for error in self.errors],
            'elapsed_seconds': self.elapsed_seconds,
        }
