"""Subcommand implementations: `configure_*_parser` + `run_*_command` pairs."""
