"""Exceptions raised by the planner."""


class PlannerError(Exception):
    """Base class for all planner errors."""


class ConfigurationError(PlannerError, ValueError):
    """A builder or settings value was rejected at build time."""
