"""
Field mapping from legacy documents to normalized metadata records.
"""

from .record_mapper import map_record

__all__ = ["map_record"]
