"""Logging, context and tracing helpers."""
