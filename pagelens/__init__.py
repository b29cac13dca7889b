"""
PageLens: normalized per-page analysis of remote PDFs and images.
"""

__version__ = "1.0.0"
