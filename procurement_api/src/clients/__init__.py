"""
Upstream client for the TI backlog REST API.

- api_accessor: bearer-token management and JSON request helpers
- ti_backlog: one resource class per API family plus the TIBacklogClient facade
"""

from .errors import (  # noqa: F401
    BacklogAPIError,
    BacklogAuthError,
    BacklogConfigError,
    BacklogError,
    BacklogResponseError,
)
