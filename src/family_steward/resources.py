"""The snapshot files, exposed as readable resources."""

from pathlib import Path
from urllib.parse import unquote

from mcp.types import ListResourcesResult, ReadResourceResult, Resource, TextResourceContents

from family_steward.protocol import ResourceNotFound
from family_steward.store import SnapshotStore

FILE_SCHEME = "file://"
JSON_MIME_TYPE = "application/json"


def list_resources(store: SnapshotStore) -> ListResourcesResult:
    return ListResourcesResult(
        resources=[
            Resource(
                uri=f"{FILE_SCHEME}{store.input_path}",
                name="Family Export Data",
                description="Latest exported family data",
                mimeType=JSON_MIME_TYPE,
            ),
            Resource(
                uri=f"{FILE_SCHEME}{store.output_path}",
                name="Analysis Results",
                description="Results from drift analysis",
                mimeType=JSON_MIME_TYPE,
            ),
        ]
    )


def read_resource(uri: str) -> ReadResourceResult:
    """Return a file's text by its file:// URI.

    Existence is the only check: the advertised URIs point at this
    bridge's own snapshot files.
    """
    path = Path(unquote(uri.removeprefix(FILE_SCHEME)))
    if not path.is_file():
        raise ResourceNotFound()
    return ReadResourceResult(
        contents=[
            TextResourceContents(
                uri=uri,
                mimeType=JSON_MIME_TYPE,
                text=path.read_text(encoding="utf-8"),
            )
        ]
    )
