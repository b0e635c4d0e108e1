"""
Admin module - Platform operator portal.
"""
