"""Classbook: recurring classes, attendance, makeup credits and rankings.

The package is organized by feature (schedules, attendance, requests,
staging, finalization, ranking, ...) with thin Flask controllers on top of
service and repository layers.
"""
