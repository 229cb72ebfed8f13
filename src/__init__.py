"""MarketRec: marketplace product recommendation service.

This package learns user and product embeddings from implicit interaction
signals (views, cart and wishlist changes, purchases) and serves ranked
product lists, falling back to popularity rankings for cold-start users.

Modules:
    api: FastAPI application and REST API endpoints
    recommender: Training, inference, caching and fallback ranking
"""

__version__ = "0.2.0"
