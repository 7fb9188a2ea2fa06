"""
Ingestion

Loading trade snapshots from local files.
"""

from dataflow.ingestion.snapshot import load_trade_snapshot

__all__ = ["load_trade_snapshot"]
