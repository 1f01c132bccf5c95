"""Built-in authentication schemes.

Each scheme lives in its own subpackage and subclasses
:class:`~negotiator.auth.base.AuthScheme`:

* :class:`BasicScheme` -- ``basic``, :rfc:`7617`.
* :class:`DigestScheme` -- ``digest``, :rfc:`7616`.
* :class:`BearerScheme` -- ``bearer``, :rfc:`6750`.

:func:`~negotiator.auth.selector.create_default_registry` registers all of
them.
"""

from negotiator.schemes.basic import BasicScheme
from negotiator.schemes.bearer import BearerScheme
from negotiator.schemes.digest import DigestScheme

__all__ = ["BasicScheme", "BearerScheme", "DigestScheme"]
