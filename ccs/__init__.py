"""Custom Case Studio backend package."""

from .backend import Backend
from .configuration import Configuration
from .constants import APP_NAME
from .options import CaseOptions

__all__ = ["Backend", "CaseOptions", "Configuration", "APP_NAME"]
