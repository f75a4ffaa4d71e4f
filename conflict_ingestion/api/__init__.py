"""HTTP surface for the conflict ingestion service."""
