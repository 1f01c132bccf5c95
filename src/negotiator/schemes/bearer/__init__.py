"""Bearer token authentication scheme (:rfc:`6750`)."""

from negotiator.schemes.bearer.scheme import BearerScheme

__all__ = ["BearerScheme"]
