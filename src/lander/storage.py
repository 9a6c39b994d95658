# lander: Project persistence. One directory per project id under the projects root, holding exactly one
# index.html; html/css/js are always derived from that file. Single writer per project is assumed (no locking).

import pathlib
import re
import time
from typing import Optional

from .errors import InvalidProjectId, ProjectNotFound

INDEX_FILE = "index.html"
PROJECT_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,63}$")
PROJECT_ID_PREFIX = "landing"


def now_ms() -> int:
    """Return the current UNIX timestamp in milliseconds."""
    return time.time_ns() // 1_000_000


def validate_project_id(project_id: str) -> str:
    """Return project_id unchanged if it is safe to use as a path component, else raise InvalidProjectId."""
    if not isinstance(project_id, str) or not PROJECT_ID_PATTERN.match(project_id):
        raise InvalidProjectId(str(project_id))
    return project_id


class ProjectStore:
    """
    Filesystem-backed project documents.

    All paths resolve inside root; ids are validated before any path is built,
    so a crafted id can never escape the projects directory.
    """

    def __init__(self, root: pathlib.Path) -> None:
        self.root = pathlib.Path(root)
        self._last_id_ms = 0

    def new_project_id(self) -> str:
        """Allocate a timestamp token, bumped past the previous one so ids stay unique within this store."""
        stamp = max(now_ms(), self._last_id_ms + 1)
        self._last_id_ms = stamp
        return f"{PROJECT_ID_PREFIX}-{stamp}"

    def project_dir(self, project_id: str) -> pathlib.Path:
        return self.root / validate_project_id(project_id)

    def document_path(self, project_id: str) -> pathlib.Path:
        return self.project_dir(project_id) / INDEX_FILE

    def exists(self, project_id: str) -> bool:
        return self.document_path(project_id).is_file()

    def read(self, project_id: str) -> str:
        """Return the stored document or raise ProjectNotFound."""
        path = self.document_path(project_id)
        if not path.is_file():
            raise ProjectNotFound(project_id)
        return path.read_text(encoding="utf-8")

    def read_if_exists(self, project_id: Optional[str]) -> Optional[str]:
        """Best-effort read used for context injection; unknown or unsafe ids yield None."""
        if not project_id:
            return None
        try:
            return self.read(project_id)
        except (ProjectNotFound, InvalidProjectId):
            return None

    def write(self, project_id: str, document: str) -> pathlib.Path:
        """Write the document, creating the project directory when absent."""
        path = self.document_path(project_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        # lander: Write via a sibling temp file and replace so a reader never sees a half-written page.
        tmp = path.with_suffix(".tmp")
        tmp.write_text(document, encoding="utf-8")
        tmp.replace(path)
        return path
