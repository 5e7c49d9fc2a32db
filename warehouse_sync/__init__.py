"""
Warehouse Sync
==============

Incremental replication of PostgreSQL tables into a BigQuery dataset.

- Full sync: extract the entire table (first run, forced refresh, or no
  tracking column)
- Incremental sync: extract rows created since the last checkpoint

Rows are loaded in batches of 100; a failed batch is logged and skipped
without aborting the rest of the table.
"""

__version__ = "1.0.0"
