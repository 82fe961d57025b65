"""Import orchestration, output formatting and the command-line interface."""
