"""
IGDB ingestion pipeline.

Client, contracts, record mapping and the batch import orchestrator.
"""
