"""
Material Engine

Client-side page cache and navigation engine for e-learning materials.
"""

from material_engine.session import MaterialSession

__all__ = ["MaterialSession"]

__version__ = "0.1.0"
