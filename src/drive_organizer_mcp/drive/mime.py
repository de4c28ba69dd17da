"""MIME types used by Drive and the export table for Workspace documents."""

FOLDER_MIME = "application/vnd.google-apps.folder"
DOCUMENT_MIME = "application/vnd.google-apps.document"
SPREADSHEET_MIME = "application/vnd.google-apps.spreadsheet"
PRESENTATION_MIME = "application/vnd.google-apps.presentation"
DRAWING_MIME = "application/vnd.google-apps.drawing"
SCRIPT_MIME = "application/vnd.google-apps.script"

WORKSPACE_PREFIX = "application/vnd.google-apps."

EXPORT_TEXT = "text/plain"
EXPORT_CSV = "text/csv"
EXPORT_PNG = "image/png"
EXPORT_SCRIPT_JSON = "application/vnd.google-apps.script+json"

# Workspace-native documents have no byte stream; they must be exported.
EXPORT_FORMATS: dict[str, str] = {
    DOCUMENT_MIME: EXPORT_TEXT,
    SPREADSHEET_MIME: EXPORT_CSV,
    PRESENTATION_MIME: EXPORT_TEXT,
    DRAWING_MIME: EXPORT_PNG,
    SCRIPT_MIME: EXPORT_SCRIPT_JSON,
}


def is_folder(mime_type: str) -> bool:
    return mime_type == FOLDER_MIME


def is_workspace_document(mime_type: str) -> bool:
    """True for Google-native types other than folders."""
    return mime_type.startswith(WORKSPACE_PREFIX) and not is_folder(mime_type)


def export_format_for(mime_type: str) -> str:
    """Export target for a Workspace document; unknown types export as text."""
    return EXPORT_FORMATS.get(mime_type, EXPORT_TEXT)


def is_text_mime_type(mime_type: str) -> bool:
    """Heuristic: treat text/*, JSON, XML and script sources as text."""
    mime_type = mime_type.lower()
    return (
        mime_type.startswith("text/")
        or "json" in mime_type
        or "xml" in mime_type
        or "javascript" in mime_type
        or "typescript" in mime_type
    )
