"""Sales Associate — multi-site quote and proposal pipeline for Slow World."""

__version__ = "0.4.0"
