"""Conversational analytics client: streams typed answers from an analytics service."""

__version__ = "1.0.0"
