"""
stormstats package
==================

Storm event impact report over the NOAA Storm Database.

- The CLI entry point is in `stormstats/cli.py`.
- Dataset loading is in `stormstats/loader.py`.
- Event-type / unit-code cleaning is in `stormstats/normalize.py`.
- Grouped sums per event type are in `stormstats/aggregate.py`.
- Ranking, charts and the DOCX report are in `stormstats/report.py`.
"""

__version__ = '0.1.0'
