"""
Lab report comparison engine.

Submits multi-report comparison jobs, polls them to completion, and aligns
extracted lab parameters into classified, summarized trends.
"""

__version__ = "1.0.0"
