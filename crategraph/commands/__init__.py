"""CLI subcommands for crategraph."""
