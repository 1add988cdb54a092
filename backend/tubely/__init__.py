"""
Tubely video ingestion backend.
"""
