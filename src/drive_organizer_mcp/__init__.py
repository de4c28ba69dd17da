"""Drive Organizer MCP.

Path-oriented access to Google Drive: resolve ``/Documents/Reports`` style
paths to Drive IDs, list and search folders, read files, and move, rename
or create items in bulk.
"""

from drive_organizer_mcp.__version__ import __version__

__all__ = ["__version__"]
