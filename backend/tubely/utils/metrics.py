"""
Prometheus metrics definitions for the API.
All metrics are registered here and can be imported by other modules.
"""
from prometheus_client import Counter, Histogram

# HTTP request metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'path', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'path'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 120.0]
)

# Error metrics
errors_total = Counter(
    'errors_total',
    'Total errors',
    ['error_type']
)

# Video record metrics
videos_created_total = Counter(
    'videos_created_total',
    'Total draft video records created'
)

thumbnails_uploaded_total = Counter(
    'thumbnails_uploaded_total',
    'Total thumbnails stored'
)

# Ingestion pipeline metrics
# outcome is "persisted" or the error category
video_ingest_total = Counter(
    'video_ingest_total',
    'Total video ingestion runs',
    ['outcome']
)

video_ingest_duration_seconds = Histogram(
    'video_ingest_duration_seconds',
    'Video ingestion duration in seconds',
    ['outcome'],
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0]
)

# External tool metrics
media_tool_invocations_total = Counter(
    'media_tool_invocations_total',
    'Total ffprobe/ffmpeg invocations',
    ['tool', 'status']
)

media_tool_duration_seconds = Histogram(
    'media_tool_duration_seconds',
    'External media tool run time in seconds',
    ['tool'],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 300.0]
)

# Object storage metrics
storage_requests_total = Counter(
    'storage_requests_total',
    'Total object storage requests',
    ['operation', 'status']
)
