"""Structured logging and Prometheus metrics for kubeinformer."""
