# SPDX-License-Identifier: MIT
"""Exception types raised above the HTTP layer.

Upstream failures keep their `requests` exception types; these cover the
failures that originate in this package.
"""


class ConfigError(ValueError):
    """Invalid environment configuration."""


class AggregationError(RuntimeError):
    """An aggregation service could not build its unified record."""


class AdventureNotFoundError(LookupError):
    def __init__(self, adventure_id: str):
        super().__init__(f"Adventure context not found for {adventure_id}")
        self.adventure_id = adventure_id


class AIAgentError(RuntimeError):
    """The AI agent request failed or produced no usable answer."""
