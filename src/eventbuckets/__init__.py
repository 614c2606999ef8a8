"""
Event Buckets

Regex-based event bucketing: register a filter against a named bucket and
retroactively classify the events it matches.
"""

__version__ = "1.0.0"
