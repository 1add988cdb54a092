"""
Media tooling abstraction module.
Provides probe and fast-start interfaces plus their ffmpeg implementations.
"""
from tubely.media.aspect import AspectClass, aspect_ratio, classify_ratio, reduce_ratio
from tubely.media.base import MediaProbe, MediaTranscoder
from tubely.media.ffmpeg import FFprobeProbe, FFmpegFastStartTranscoder

__all__ = [
    "AspectClass",
    "aspect_ratio",
    "classify_ratio",
    "reduce_ratio",
    "MediaProbe",
    "MediaTranscoder",
    "FFprobeProbe",
    "FFmpegFastStartTranscoder",
]
