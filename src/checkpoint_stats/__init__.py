"""
checkpoint-stats: checkpoint health reporting for stream-processing jobs.

Tracks checkpoint lifecycle events (trigger, acknowledge, complete, fail,
restore) and projects immutable snapshots into a stable report document
for monitoring dashboards.
"""

__version__ = "0.1.0"
