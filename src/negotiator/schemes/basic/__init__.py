"""HTTP Basic authentication scheme.

Encodes a ``username:password`` pair using Base64 and answers with an
``Authorization: Basic`` header per :rfc:`7617`.

See Also:
    :class:`~negotiator.schemes.basic.scheme.BasicScheme`
"""

from negotiator.schemes.basic.scheme import BasicScheme

__all__ = ["BasicScheme"]
