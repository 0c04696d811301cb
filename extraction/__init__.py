"""
Offline extraction of the infographic lookup tables.

Reads the upstream game-data dump once and writes ``colors.json`` and
``species-meta.json`` for the runtime service.
"""

__version__ = "0.1.0"

from .pipeline import ExtractionConfig, ExtractionPipeline, ExtractionResult

__all__ = [
    "ExtractionConfig",
    "ExtractionPipeline",
    "ExtractionResult",
]
