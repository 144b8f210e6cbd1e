"""Services package."""
from .extraction_service import ExtractionService, create_service

__all__ = ["ExtractionService", "create_service"]
