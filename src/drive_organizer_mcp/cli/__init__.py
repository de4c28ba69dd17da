"""Command-line interface for drive-organizer-mcp."""
