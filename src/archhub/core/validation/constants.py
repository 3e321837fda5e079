"""Validation constants for architecture checks."""

import re

from archhub.core.spec._constants import HTTP_METHODS, RELATION_TYPES

VALID_HTTP_METHODS = set(HTTP_METHODS)
VALID_RELATION_TYPES = set(RELATION_TYPES)

# Naming conventions
PASCAL_CASE_PATTERN = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
CAMEL_CASE_PATTERN = re.compile(r"^[a-z][a-zA-Z0-9]*$")
ENDPOINT_PATH_PATTERN = re.compile(r"^/[a-z0-9\-/:]*$")

# Fields every entity is expected to carry
TIMESTAMP_FIELDS = ("createdAt", "updatedAt")

# Substrings in an endpoint schema that count as pagination support
PAGINATION_HINTS = ("page", "limit", "offset")

# Suggestion categories
ENDPOINT_GENERATION = "endpoint-generation"
ENTITY_ENHANCEMENT = "entity-enhancement"
