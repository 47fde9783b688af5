"""Command line tool for inspecting and updating ManifestWork status."""
