"""
Dashboard module - Role-specific home screen aggregates.
"""
