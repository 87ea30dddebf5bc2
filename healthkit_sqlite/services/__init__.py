"""Conversion pipeline services"""

from .aggregator import ElementAggregator
from .batch_writer import RowBatchWriter
from .converter import Converter
from .export_source import ExportSource

__all__ = [
    'ElementAggregator',
    'RowBatchWriter',
    'Converter',
    'ExportSource',
]
