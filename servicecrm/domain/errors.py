"""
Typed failures raised by the finance engine and the access policy.

The HTTP layer is the only place these are turned into status codes and
user-facing text.
"""


class ServiceCRMError(Exception):
    """Base class for servicecrm failures."""


class DataUnavailable(ServiceCRMError):
    """The record store could not be read (unreachable, timed out, cancelled)."""


class ConfigurationError(ServiceCRMError):
    """Static configuration is invalid. Raised at load time, fatal at startup."""
