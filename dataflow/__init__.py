"""
Dataflow Layer

Trade-to-chart computation for the charting engine. Contains:
- candle_aggregation: Tick rounding, bucketing, candle and USD price aggregation
- adapters: Currency metadata and date label collaborators
- ingestion: Trade snapshot loading
"""
