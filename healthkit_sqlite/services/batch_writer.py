"""Row batching writer: groups rows per table and commits them in batches"""

import logging
from collections import Counter, defaultdict

from healthkit_sqlite.repositories import RowRepository, SchemaRegistry
from healthkit_sqlite.utils.database_helpers import fold_identifier

logger = logging.getLogger(__name__)


class RowBatchWriter:
    """Writes Rows to SQLite in bounded, transactional per-table batches

    Each batch is one transaction: the schema changes it needs and its
    inserts commit together or not at all. Failures are not retried;
    they propagate as SchemaError/DatabaseError after the rollback.
    """

    def __init__(self, db, batch_size=5000, registry=None, on_flush=None):
        """Initialize the writer

        Args:
            db: sqlite3 connection opened by open_db
            batch_size: Pending rows per table that trigger a commit
            registry: SchemaRegistry to use (a fresh one by default)
            on_flush: Optional callable(table, batch_rows, total_rows)
                invoked after every committed batch
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self.batch_size = batch_size
        self.registry = registry if registry is not None else SchemaRegistry(db)
        self.row_repo = RowRepository(db)
        self.on_flush = on_flush
        self._pending = defaultdict(list)
        self.row_counts = Counter()

    @property
    def pending_count(self):
        return sum(len(rows) for rows in self._pending.values())

    def submit(self, row):
        """Queue a row; commits its table's batch once it is full"""
        key = fold_identifier(row.table)
        pending = self._pending[key]
        pending.append(row)
        if len(pending) >= self.batch_size:
            self._flush_table(key)

    def flush(self):
        """Commit every pending batch"""
        for key in list(self._pending):
            self._flush_table(key)

    def discard(self):
        """Drop pending rows without writing them (after a fatal error)"""
        self._pending.clear()
        self.row_repo.rollback()
        self.registry.discard_pending()

    def _flush_table(self, key):
        rows = self._pending.pop(key, None)
        if not rows:
            return

        # Worst-case column set of the batch, first value per column as sample
        samples = {}
        for row in rows:
            for name, value in row.columns:
                samples.setdefault(name, value)

        try:
            with self.row_repo.transaction():
                table, column_names = self.registry.ensure_columns(rows[0].table, samples.items())
                for row in rows:
                    values = {column_names[fold_identifier(name)]: value for name, value in row.columns}
                    self.row_repo.insert_row(table, row, values)
        except Exception:
            self.registry.discard_pending()
            raise

        self.registry.mark_committed()
        self.row_counts[table] += len(rows)
        logger.debug("Committed %d rows to %s (%d total)", len(rows), table, self.row_counts[table])

        if self.on_flush is not None:
            self.on_flush(table, len(rows), self.row_counts[table])
