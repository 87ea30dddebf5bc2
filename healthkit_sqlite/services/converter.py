"""Converter service: one streaming pass from an Apple Health export to SQLite"""

import logging
import time

from healthkit_sqlite.database import close_db, open_db
from healthkit_sqlite.models import ConversionSummary
from healthkit_sqlite.repositories import SchemaRegistry
from healthkit_sqlite.services.aggregator import ElementAggregator
from healthkit_sqlite.services.batch_writer import RowBatchWriter
from healthkit_sqlite.services.event_reader import iter_events
from healthkit_sqlite.services.export_source import ExportSource
from healthkit_sqlite.services.pipeline import run_pipeline

logger = logging.getLogger(__name__)


class Converter:
    """Service converting HealthKit exports into dynamically-shaped SQLite tables"""

    def __init__(self, config):
        """Initialize the converter

        Args:
            config: Mapping of configuration values (see config.Config)
        """
        self.config = config

    def convert(self, export_path, database_path=None, on_progress=None, db=None):
        """Convert an export into a SQLite database

        Parsing and classification run in a producer thread; aggregation,
        schema evolution and writes run in the calling thread.

        Args:
            export_path: Path to export.zip or export.xml
            database_path: Destination database (defaults to DATABASE_PATH)
            on_progress: Optional callable(table, batch_rows, total_rows)
                called after every committed batch
            db: Optional already-open connection (used instead of database_path)

        Returns:
            ConversionSummary

        Raises:
            ConverterError: On the first fatal error; batches committed
                before it stay in the database.
        """
        database_path = database_path or self.config['DATABASE_PATH']
        started = time.monotonic()
        own_db = db is None
        if own_db:
            db = open_db(database_path)

        logger.info("Converting %s into %s", export_path, database_path if own_db else 'connection')

        try:
            with ExportSource(export_path,
                              export_root=self.config['EXPORT_ROOT'],
                              xml_member=self.config['EXPORT_XML_MEMBER']) as source:
                writer = RowBatchWriter(
                    db,
                    batch_size=self.config['BATCH_SIZE'],
                    registry=SchemaRegistry(db).load(),
                    on_flush=on_progress,
                )
                aggregator = ElementAggregator(route_loader=source.load_route)

                def produce():
                    with source.open_xml() as stream:
                        yield from iter_events(stream)

                def consume(event):
                    row = aggregator.process(event)
                    if row is not None:
                        writer.submit(row)

                try:
                    run_pipeline(produce, consume, queue_size=self.config['PIPELINE_QUEUE_SIZE'])
                    aggregator.finish()
                    writer.flush()
                except Exception:
                    writer.discard()
                    raise
        finally:
            if own_db:
                close_db(db)

        summary = ConversionSummary(
            rows_per_table=dict(writer.row_counts),
            errors=list(aggregator.errors),
            elapsed_seconds=time.monotonic() - started,
        )
        logger.info("Wrote %d rows to %d tables with %d recovered errors in %.1fs",
                    summary.total_rows, len(summary.rows_per_table),
                    summary.error_count, summary.elapsed_seconds)
        return summary
