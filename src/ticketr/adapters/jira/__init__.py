"""
Jira adapter - REST API v2 client and IssueTrackerPort implementation.
"""

from .adapter import JiraAdapter, format_description, parse_description
from .client import JiraApiClient, RateLimiter
from .fields import DEFAULT_FIELD_MAPPINGS, FieldMapping, FieldType, build_field_mappings


__all__ = [
    "DEFAULT_FIELD_MAPPINGS",
    "FieldMapping",
    "FieldType",
    "JiraAdapter",
    "JiraApiClient",
    "RateLimiter",
    "build_field_mappings",
    "format_description",
    "parse_description",
]
