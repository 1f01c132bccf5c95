"""Built-in CLI sub-commands for negotiator.

* :mod:`~negotiator.commands.probe` -- send a request and report the negotiation.
* :mod:`~negotiator.commands.credentials` -- manage the credential store.
* :mod:`~negotiator.commands.config` -- view and modify global settings.
* :mod:`~negotiator.commands.schemes` -- list schemes in priority order.

Each module exports either a :class:`typer.Typer` sub-application (for
multi-command groups like ``credentials`` and ``config``) or a plain
callback registered directly on the root app (``probe``, ``schemes``).
"""
