"""Audit module - System log of security and admin actions."""

from campus.modules.audit.models import SystemLog
from campus.modules.audit.repository import log_action

__all__ = ["SystemLog", "log_action"]
