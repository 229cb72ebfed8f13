"""FastAPI application module for MarketRec.

This module contains the FastAPI application, route handlers, exceptions,
structured logging and in-process metrics for the recommendation service.
"""
