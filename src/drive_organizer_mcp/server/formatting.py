"""Plain-text renderers for directory and file trees."""

from drive_organizer_mcp.drive.models import TreeTraversal
from drive_organizer_mcp.drive.paths import ROOT_PATH, name_from_path, parent_path, split_path

ROOT_LABEL = "My Drive (root)"

FILE_ICONS: dict[str, str] = {
    "doc": "📝",
    "docx": "📝",
    "gdoc": "📝",
    "xls": "📊",
    "xlsx": "📊",
    "gsheet": "📊",
    "ppt": "📺",
    "pptx": "📺",
    "gslides": "📺",
    "pdf": "📋",
    "json": "📋",
    "js": "🟨",
    "ts": "🟨",
    "jsx": "🟨",
    "tsx": "🟨",
    "py": "🐍",
    "java": "☕",
    "html": "🌐",
    "htm": "🌐",
    "css": "🎨",
    "jpg": "🖼️",
    "jpeg": "🖼️",
    "png": "🖼️",
    "gif": "🖼️",
    "bmp": "🖼️",
    "mp4": "🎥",
    "avi": "🎥",
    "mov": "🎥",
    "mkv": "🎥",
    "mp3": "🎵",
    "wav": "🎵",
    "flac": "🎵",
    "zip": "🗜️",
    "rar": "🗜️",
    "7z": "🗜️",
    "tar": "🗜️",
    "gz": "🗜️",
}
DEFAULT_FILE_ICON = "📄"


def file_icon(name: str) -> str:
    extension = name.lower().rsplit(".", 1)[-1] if "." in name else ""
    return FILE_ICONS.get(extension, DEFAULT_FILE_ICON)


def _label(path: str) -> str:
    return ROOT_LABEL if path == ROOT_PATH else name_from_path(path)


def _depth(path: str) -> int:
    return len(split_path(path))


def _failure_lines(tree: TreeTraversal) -> list[str]:
    if not tree.failures:
        return []
    lines = ["", f"Could not list {len(tree.failures)} folder(s):"]
    lines.extend(f"  {failure.path}: {failure.reason}" for failure in tree.failures)
    return lines


def format_directory_tree(tree: TreeTraversal) -> str:
    """Render folder paths as an indented tree.

    Example output::

        📁 Directory Tree:

        📁 My Drive (root)
          └── 📁 Documents
    """
    directories = sorted(tree.paths)
    if not directories:
        return "\n".join(["No directories found.", *_failure_lines(tree)])

    lines = ["📁 Directory Tree:", ""]
    for i, directory in enumerate(directories):
        depth = _depth(directory)
        prefix = ""
        if depth > 0:
            is_last = i == len(directories) - 1 or not directories[i + 1].startswith(
                directory + "/"
            )
            prefix = "└── " if is_last else "├── "
        lines.append(f"{'  ' * depth}{prefix}📁 {_label(directory)}")

    lines.extend(["", f"Total directories: {len(directories)}"])
    lines.extend(_failure_lines(tree))
    return "\n".join(lines)


def format_file_tree(tree: TreeTraversal, max_files: int = 500) -> str:
    """Render file paths grouped under their directories.

    Only the first ``max_files`` paths are shown; a note explains the cut.
    """
    total = len(tree.paths)
    files = sorted(tree.paths)[:max_files]
    if not files:
        return "\n".join(["No files found.", *_failure_lines(tree)])

    by_directory: dict[str, list[str]] = {}
    for path in files:
        by_directory.setdefault(parent_path(path), []).append(path)

    lines = ["📄 File Tree:", ""]
    for directory in sorted(by_directory):
        depth = _depth(directory)
        lines.append(f"{'  ' * depth}📁 {_label(directory)}/")
        for path in sorted(by_directory[directory]):
            name = name_from_path(path)
            lines.append(f"{'  ' * (depth + 1)}{file_icon(name)} {name}")
        lines.append("")

    lines.append(f"Total files shown: {len(files)}")
    if total > len(files):
        lines.append(f"(Showing first {len(files)} of {total} files)")
        lines.append("Use a more specific rootPath or increase maxFiles to see more.")
    lines.extend(_failure_lines(tree))
    return "\n".join(lines)
