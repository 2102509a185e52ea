from __future__ import annotations


class PricingError(Exception):
    pass


class DataAccessError(PricingError):
    """
    A catalog read failed or returned rows the engine cannot interpret.

    Always propagated to the caller. Retry policy, if any, belongs to whoever owns the connection.
    """


class InvalidRequest(PricingError, ValueError):
    pass
