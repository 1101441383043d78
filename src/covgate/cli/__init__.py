"""covgate command-line interface."""
