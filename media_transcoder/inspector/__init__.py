"""Media inspection using FFprobe."""

from media_transcoder.inspector.analyzer import MediaInspector

__all__ = [
    "MediaInspector",
]
