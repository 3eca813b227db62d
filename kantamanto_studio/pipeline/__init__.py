from .processing_pipeline import ProcessingPipeline

__all__ = ["ProcessingPipeline"]
