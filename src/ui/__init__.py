"""Command-line and DearPyGui front-ends."""
