"""Shared test helpers and stub classes.

Import from here instead of duplicating these classes in individual test files.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Iterable, Mapping, Sequence

from tabset.core.errors import AdapterFailure
from tabset.core.models import DocumentSnapshot
from tabset.editor.surface import WorkspaceEditorSurface
from tabset.editor.workspace import DocumentWorkspace
from tabset.ui.models import PickItem

FAST_TIMEOUT = 0.02

FILES = {
    "file:///work/a.py": "import os\nprint(os.name)\n",
    "file:///work/b.py": "x = 1\n",
    "file:///work/c.md": "# notes\n",
    "file:///home/d.txt": "line one\nline two\nline three\n",
}


class RecordingStore:
    """In-memory key-value store that remembers every write, in order."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})
        self.writes: list[tuple[str, str]] = []

    def get(self, key: str, default: str) -> str:
        return self.values.get(key, default)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value
        self.writes.append((key, value))


class FakePrompter:
    """Scripted :class:`~tabset.ui.models.UserPrompter`.

    Answers are consumed in order. For pickers an answer is either ``None``
    (dismissed), a label string, or a list of label strings for
    ``pick_many``.
    """

    def __init__(self, answers: Iterable[Any] = ()) -> None:
        self._answers: deque[Any] = deque(answers)
        self.prompts: list[tuple[str, Any]] = []
        self.warnings: list[str] = []
        self.errors: list[str] = []

    def queue(self, *answers: Any) -> None:
        self._answers.extend(answers)

    async def pick_one(self, items: Sequence[PickItem[Any]], *, title: str) -> PickItem[Any] | None:
        self.prompts.append(("pick_one", [item.label for item in items]))
        answer = self._answers.popleft()
        if answer is None:
            return None
        return next(item for item in items if item.label == answer)

    async def pick_many(self, items: Sequence[PickItem[Any]], *, title: str) -> list[PickItem[Any]] | None:
        self.prompts.append(("pick_many", [item.label for item in items]))
        answer = self._answers.popleft()
        if answer is None:
            return None
        return [item for item in items if item.label in answer]

    async def ask_text(self, prompt: str, *, default: str = "") -> str | None:
        self.prompts.append(("ask_text", default))
        return self._answers.popleft()

    async def confirm(self, message: str, *, accept: str = "Yes", reject: str = "No") -> bool:
        self.prompts.append(("confirm", message))
        return bool(self._answers.popleft())

    def show_warning(self, message: str) -> None:
        self.warnings.append(message)

    def show_error(self, message: str) -> None:
        self.errors.append(message)


def make_workspace(files: Mapping[str, str] | None = None) -> DocumentWorkspace:
    """Workspace whose loader serves ``files`` and raises for anything else."""

    contents = dict(files or {})

    def _loader(location: str) -> str:
        if location not in contents:
            raise FileNotFoundError(location)
        return contents[location]

    return DocumentWorkspace(loader=_loader)


def make_surface(
    files: Mapping[str, str] | None = None,
    **kwargs: Any,
) -> WorkspaceEditorSurface:
    return WorkspaceEditorSurface(make_workspace(files), **kwargs)


class StuckSurface:
    """Editor surface that accepts close requests but never closes anything."""

    def __init__(self, locations: Sequence[str]) -> None:
        self.documents = [object() for _ in locations]
        self._locations = {id(handle): location for handle, location in zip(self.documents, locations)}
        self.close_requests = 0
        self.listener_count = 0

    def list_open_documents(self) -> Sequence[Any]:
        return tuple(self.documents)

    def active_document(self) -> Any:
        return self.documents[0] if self.documents else None

    def capture_state(self, handle: Any) -> DocumentSnapshot:
        return DocumentSnapshot(location=self._locations[id(handle)])

    async def close_active_document(self) -> None:
        self.close_requests += 1

    def on_active_document_changed(self, listener: Any):
        self.listener_count += 1

        def dispose() -> None:
            self.listener_count -= 1

        return dispose

    async def open_document(self, location: str, **_kwargs: Any) -> None:
        raise AdapterFailure(f"Unable to open {location}", location=location)
