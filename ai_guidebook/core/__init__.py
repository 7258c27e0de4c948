"""
Core modules for AI Guidebook.

This package contains validation, the record service, filtering and
aggregation for the dashboard, and declaration generation.
"""
