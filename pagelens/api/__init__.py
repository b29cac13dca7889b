"""
FastAPI application layer for the PageLens analysis pipeline.

This module exposes HTTP endpoints that take a remote document URL, run it
through the OCR and vision engines, and return normalized pages.
"""
