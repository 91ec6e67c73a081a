"""
Shooting Pulse - Reporting

Charts and printed summaries for a pipeline run.
"""
