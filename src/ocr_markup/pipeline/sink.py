"""Output sinks for rasterized and split page images.

The rasterizer only needs two things from its destination: a way to open
a named sub-container and a way to write a named blob into it. Any
hierarchical storage satisfying ``OutputSink`` works; ``DirectorySink``
is the local-filesystem implementation used by the CLI.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable


__all__ = [
    "DirectorySink",
    "OutputSink",
]


@runtime_checkable
class OutputSink(Protocol):
    """A writable, hierarchical destination for output files."""

    def subcontainer(self, name: str) -> OutputSink:
        """Create or open the named sub-container."""
        ...

    def write(self, name: str, data: bytes | str) -> str:
        """Write a named blob, replacing any existing one.

        Returns:
            A locator for the written blob (e.g. its path).
        """
        ...


class DirectorySink:
    """``OutputSink`` backed by a directory on the local filesystem.

    Example:
        ```python
        sink = DirectorySink(Path("out"))
        pages = sink.subcontainer("converted_jpegs")
        pages.write("scan_page_1.jpg", jpeg_bytes)
        ```
    """

    def __init__(self, root: Path | str) -> None:
        """Initialize the sink.

        Args:
            root: Directory that receives the output. Created on first
                write if it does not exist.
        """
        self._root = Path(root)

    @property
    def root(self) -> Path:
        """The directory backing this sink."""
        return self._root

    def subcontainer(self, name: str) -> DirectorySink:
        """Create or open a subdirectory."""
        path = self._root / name
        path.mkdir(parents=True, exist_ok=True)
        return DirectorySink(path)

    def write(self, name: str, data: bytes | str) -> str:
        """Write a file into the directory and return its path."""
        self._root.mkdir(parents=True, exist_ok=True)
        path = self._root / name
        if isinstance(data, str):
            path.write_text(data, encoding="utf-8")
        else:
            path.write_bytes(data)
        return str(path)

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"DirectorySink({str(self._root)!r})"
