"""
Access to the long-lived objects created in the application lifespan.

Both are stateless with respect to requests; per-request data never lives here.
"""

from pagelens.models.manager import ModelManager
from pagelens.pipeline.analysis import AnalysisPipeline

# FastAPI dependency functions
def get_model_manager() -> ModelManager:
    """FastAPI dependency to get the model manager from app state."""
    from ..main import app_state
    return app_state["model_manager"]

def get_pipeline() -> AnalysisPipeline:
    """FastAPI dependency to get the analysis pipeline from app state."""
    from ..main import app_state
    return app_state["pipeline"]
