"""
Owner routing for feedback.

Components:
- OwnerRouter: product-area similarity routing, batched or streamed
- ProductArea / OwnerSuggestion: routing target and outcome
- RoutingConfig: boost, floor and batching settings
"""

from src.routing.config import RoutingConfig
from src.routing.owner_router import OwnerRouter
from src.routing.schemas import OwnerSuggestion, ProductArea

__all__ = ["OwnerRouter", "OwnerSuggestion", "ProductArea", "RoutingConfig"]
