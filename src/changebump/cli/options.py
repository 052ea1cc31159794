"""Options and arguments shared by several changebump commands."""

import typer

argument_range = typer.Argument("HEAD", help="Revision or range to check, e.g. HEAD or v1.0.0..HEAD")
argument_rev = typer.Argument(
    "HEAD", help="Revision to read history up to, e.g. HEAD or v1.2.0; for a range A..B, B is used"
)

option_directory = typer.Option(
    None,
    "-C",
    "--directory",
    help="Run as if started in this directory",
    file_okay=False,
    dir_okay=True,
)
option_verbose = typer.Option(0, "-v", "--verbose", count=True, help="Increase log verbosity (-v, -vv)")
option_prefix = typer.Option(None, "--prefix", help="Version tag prefix (default from config, 'v')")
option_package_path = typer.Option(
    None,
    "--path",
    help="Only consider commits touching this path (monorepo package)",
)
option_first_parent = typer.Option(False, "--first-parent", help="Only follow the first parent of merges")
option_merges = typer.Option(False, "--merges", help="Include merge commits")

