"""semspine command-line interface."""
