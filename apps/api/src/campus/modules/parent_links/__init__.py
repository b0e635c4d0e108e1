"""
Parent links module - Parent/student relationships.
"""

from campus.modules.parent_links.models import ParentLink, ParentLinkStatus, ParentStudent

__all__ = ["ParentLink", "ParentLinkStatus", "ParentStudent"]
