"""Main CLI entry point for Blade."""

import logging

import click


def get_version() -> str:
    """Get the current version."""
    try:
        from blade import __version__

        return __version__
    except ImportError:
        return "unknown"


@click.group()
@click.version_option(version=get_version(), prog_name="blade")
@click.option("-v", "--verbose", is_flag=True, help="Log compression decisions to stderr.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Blade - conversation context management.

    \b
    Examples:
        blade context compress history.json      Compress a saved conversation
        blade context score history.json         Show per-message importance
        blade context estimate history.json      Estimate token usage
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )


# Import subcommands - these register themselves with the main group
def _register_commands() -> None:
    """Register all subcommand groups."""
    from . import context  # noqa: F401


_register_commands()

if __name__ == "__main__":
    main()
