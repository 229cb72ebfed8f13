"""Recommendation core for MarketRec.

This module contains the ID mapping, training set construction, the
two-tower embedding model, training orchestration, inference, the
recommendation cache and the popularity fallback.
"""
