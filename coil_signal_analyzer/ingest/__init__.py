"""Ingest package - recording file access.

This package handles:
- Counting samples in flat float32 recordings
- Bounded window reads (partial reads for single-cycle analysis)
- Whole-file reads through a pooled chunk buffer

Key classes:
- SampleStore: reads windows, whole files, and sample counts
- BufferPool: fixed set of reusable chunk buffers

Design principle:
- Files are opened read-only and closed before each call returns
- Reads never go past end-of-file; short reads shrink the result
"""

from .sample_store import BufferPool, SampleStore, SampleStoreConfig

__all__ = [
    "BufferPool",
    "SampleStore",
    "SampleStoreConfig",
]
