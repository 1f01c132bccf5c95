"""HTTP Digest access authentication scheme.

See Also:
    :class:`~negotiator.schemes.digest.scheme.DigestScheme` for the
    supported algorithms and qop handling.
"""

from negotiator.schemes.digest.scheme import DigestScheme

__all__ = ["DigestScheme"]
