"""
Image Harvester – Fetch every image referenced by a posts backup into one artifact.

Supports:
  • Concurrent image downloads over a bounded worker pool
  • Per-post progress reporting
  • Persisting all fetched bytes, keyed by URL, into a single artifact file
  • Inspecting an existing artifact instead of re-fetching
"""
