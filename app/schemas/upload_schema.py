from dataclasses import dataclass
from typing import Dict, List


@dataclass
class FileItem:
    """One uploaded file, held in memory only for the duration of a request."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


FileGroups = Dict[str, List[FileItem]]
