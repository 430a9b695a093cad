"""Segment store layout."""

from camrec.storage.layout import Segment, SegmentStoreLayout, parse_captured_at

__all__ = ["Segment", "SegmentStoreLayout", "parse_captured_at"]
