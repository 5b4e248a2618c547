"""Client-side state layer for the daily reading plan application."""
