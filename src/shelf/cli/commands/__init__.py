# ABOUTME: Subcommand modules for the Shelf CLI.
# ABOUTME: Each module defines one or more Click commands.
