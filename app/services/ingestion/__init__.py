"""Reservation document ingestion pipeline."""
