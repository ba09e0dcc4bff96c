"""
Contact directory orchestration for the UI layer.
"""

from .directory_workflow import ContactDirectory

__all__ = ["ContactDirectory"]
