"""
Models module - internal data structures passed between API and services.
"""

from portal.models.actor import Actor

__all__ = ["Actor"]
