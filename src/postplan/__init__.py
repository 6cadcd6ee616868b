"""Streaming social media schedule generation.

A language model writes one ``{"schedule": [...]}`` JSON document; postplan
surfaces every day of it as an event the moment its closing brace arrives.
"""

__version__ = "0.1.0"
