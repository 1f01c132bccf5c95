"""Scheme registry and priority-based scheme selection.

The :class:`SchemeRegistry` maps lowercase scheme names (``"basic"``,
``"digest"``, ``"bearer"``) to factories producing fresh
:class:`~negotiator.auth.base.AuthScheme` instances. The
:class:`SchemeSelector` walks a preference list and picks the first scheme
that the server offered *and* the registry can build.

For most use cases, call :func:`create_default_selector` to get a selector
over every built-in scheme in the default priority order.

See Also:
    :class:`~negotiator.auth.authenticator.Authenticator` -- calls
    :meth:`SchemeSelector.select` when negotiation starts or a scheme
    disappears from a later challenge set.
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional, Sequence

import httpx

from negotiator.auth.base import AuthScheme
from negotiator.auth.challenges import Challenge
from negotiator.exceptions import AuthenticationError, NoAcceptableSchemeError
from negotiator.models import DEFAULT_SCHEME_PRIORITY

logger = logging.getLogger(__name__)

SchemeFactory = Callable[[], AuthScheme]


class SchemeRegistry:
    """Registry of scheme factories keyed by lowercase scheme name.

    Example::

        from negotiator.schemes.basic import BasicScheme

        registry = SchemeRegistry()
        registry.register("basic", BasicScheme)
        scheme = registry.create("Basic")
    """

    def __init__(self) -> None:
        self._factories: dict[str, SchemeFactory] = {}

    def register(self, name: str, factory: SchemeFactory) -> None:
        """Register *factory* under *name*, replacing any previous one.

        Args:
            name: Scheme name; stored lowercased.
            factory: Zero-argument callable returning a new scheme.
        """
        self._factories[name.lower()] = factory

    def unregister(self, name: str) -> None:
        """Remove the factory registered under *name*, if any."""
        self._factories.pop(name.lower(), None)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._factories

    def create(self, name: str) -> AuthScheme:
        """Build a fresh scheme instance.

        Raises:
            AuthenticationError: If no factory is registered for *name*.
        """
        factory = self._factories.get(name.lower())
        if factory is None:
            available = ", ".join(self.names()) or "(none)"
            raise AuthenticationError(
                f"Unsupported authentication scheme '{name}'. Available schemes: {available}"
            )
        return factory()

    def names(self) -> list[str]:
        """Return the registered scheme names, sorted."""
        return sorted(self._factories)


class SchemeSelector:
    """Chooses which offered scheme to answer.

    Args:
        registry: Where schemes are built from.
        priority: Scheme names, most preferred first. Defaults to
            :data:`~negotiator.models.DEFAULT_SCHEME_PRIORITY`.
    """

    def __init__(
        self,
        registry: SchemeRegistry,
        priority: Optional[Sequence[str]] = None,
    ) -> None:
        self._registry = registry
        self._priority = [name.lower() for name in (priority or DEFAULT_SCHEME_PRIORITY)]

    @property
    def priority(self) -> list[str]:
        return list(self._priority)

    @property
    def registry(self) -> SchemeRegistry:
        return self._registry

    def select(
        self,
        challenges: Mapping[str, Challenge],
        response: Optional[httpx.Response] = None,
    ) -> AuthScheme:
        """Pick a scheme for *challenges*.

        Args:
            challenges: Lowercase scheme name to challenge.
            response: The response the challenges came from. Unused by the
                default policy; subclasses may inspect it.

        Returns:
            A fresh instance of the most preferred offered scheme.

        Raises:
            NoAcceptableSchemeError: If no offered scheme is both preferred
                and registered.
        """
        logger.debug("Authentication schemes in the order of preference: %s", self._priority)
        for name in self._priority:
            if name not in challenges:
                logger.debug("Challenge for %s authentication scheme not available", name)
                continue
            if name not in self._registry:
                logger.debug("Authentication scheme %s not supported", name)
                continue
            logger.debug("%s authentication scheme selected", name)
            return self._registry.create(name)
        offered = ", ".join(sorted(challenges)) or "(none)"
        raise NoAcceptableSchemeError(
            f"Unable to respond to any of these challenges: {offered}"
        )


def create_default_registry() -> SchemeRegistry:
    """Create a :class:`SchemeRegistry` with every built-in scheme.

    The following schemes are registered:

    - ``basic`` -- :rfc:`7617` Basic.
    - ``digest`` -- :rfc:`7616` Digest.
    - ``bearer`` -- :rfc:`6750` Bearer.

    Returns:
        A populated registry.
    """
    from negotiator.schemes.basic import BasicScheme
    from negotiator.schemes.bearer import BearerScheme
    from negotiator.schemes.digest import DigestScheme

    registry = SchemeRegistry()
    registry.register("basic", BasicScheme)
    registry.register("digest", DigestScheme)
    registry.register("bearer", BearerScheme)
    return registry


def create_default_selector(priority: Optional[Sequence[str]] = None) -> SchemeSelector:
    """Create a :class:`SchemeSelector` over :func:`create_default_registry`."""
    return SchemeSelector(create_default_registry(), priority)
