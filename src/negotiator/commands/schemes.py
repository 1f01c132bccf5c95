"""Schemes command -- show which schemes would be answered, in order."""

from __future__ import annotations

from typing import Optional

import typer

from negotiator.output import print_table


def schemes_command(
    scheme: Optional[str] = typer.Option(
        None, "--scheme", help="Priority override, e.g. 'digest,basic'."
    ),
) -> None:
    """List authentication schemes in priority order.

    Names in the priority list without an implementation are shown as
    ``unsupported``; the selector skips them. Registered schemes missing
    from the priority list are shown as ``not in priority`` and are never
    selected.

    Example::

        negotiator schemes
        NEGOTIATOR_SCHEME_PRIORITY=bearer,basic negotiator schemes
    """
    from negotiator.auth.selector import create_default_selector
    from negotiator.config import resolve_config

    config = resolve_config(cli_priority=scheme)
    selector = create_default_selector(config.scheme_priority)
    registry = selector.registry

    rows: list[list[str]] = []
    for rank, name in enumerate(selector.priority, 1):
        rows.append([str(rank), name, "supported" if name in registry else "unsupported"])
    for name in registry.names():
        if name not in selector.priority:
            rows.append(["-", name, "not in priority"])
    print_table(["priority", "scheme", "status"], rows, title="Authentication schemes")
