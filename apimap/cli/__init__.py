"""Command line interface for inspecting and calling API descriptions."""
