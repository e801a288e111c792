"""FastAPI dependencies."""

from functools import lru_cache

from dashgrid.api.config import get_settings
from dashgrid.engine.layout_engine import LayoutEngine


@lru_cache()
def get_engine() -> LayoutEngine:
    """Get the shared, settings-driven layout engine."""
    return LayoutEngine.from_settings(get_settings())
