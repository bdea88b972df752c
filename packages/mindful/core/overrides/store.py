"""Sparse override maps layered over immutable base sequences.

Layout in storage (versioned envelope written by :class:`DurableCell`)::

    {"state": {"durationOverrides": {<owner>: {<session>: {"<index>": 60}}}},
     "version": 1}

Single-level stores drop the owner level. Presence of an index means that
position is overridden; absence means the base value applies. Values are
normalized on every write, so nothing out of range or off-step is persisted.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import logging
from typing import Any, TypeVar

from mindful.core.overrides.models import (
    OVERRIDES_VERSION,
    PROGRAM_OVERRIDES_KEY,
    SESSION_OVERRIDES_KEY,
    OverrideRange,
)
from mindful.core.persistence.cell import DurableCell
from mindful.core.persistence.errors import PersistenceError
from mindful.core.storage.protocols import KeyValueStorage, Unsubscribe

logger = logging.getLogger(__name__)

ROOT_FIELD = "durationOverrides"

Item = TypeVar("Item", bound=Mapping[str, Any])


def _is_stored_value(entry: Any, value_range: OverrideRange) -> bool:
    if isinstance(entry, bool) or not isinstance(entry, (int, float)):
        return False
    if isinstance(entry, float) and not entry.is_integer():
        return False
    return value_range.contains(int(entry))


def _is_index_map(value: Any, value_range: OverrideRange) -> bool:
    if not isinstance(value, dict):
        return False
    for index, entry in value.items():
        if not isinstance(index, str) or not (index.isascii() and index.isdigit()):
            return False
        if not _is_stored_value(entry, value_range):
            return False
    return True


def _is_nested(value: Any, depth: int, value_range: OverrideRange) -> bool:
    if depth == 0:
        return _is_index_map(value, value_range)
    return isinstance(value, dict) and all(
        isinstance(k, str) and _is_nested(v, depth - 1, value_range) for k, v in value.items()
    )


class OverrideStore:
    """
    Override map of configurable depth.

    ``depth=1`` keys entries by ``session_id``; ``depth=2`` by
    ``(program_id, session_id)``. Every path-taking method expects exactly
    ``depth`` path components before the index.

    Args:
        storage: Backing key-value storage
        key: Storage slot name
        depth: Number of path components above the index
        field: Item field replaced by :meth:`compose`
        value_range: Normalization applied on write
        version: Envelope version; other versions reset the store
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str,
        *,
        depth: int,
        field: str = "duration",
        value_range: OverrideRange | None = None,
        version: int = OVERRIDES_VERSION,
    ) -> None:
        if depth < 1:
            raise ValueError(f"depth must be >= 1, got {depth}")
        self.depth = depth
        self.field = field
        self.value_range = value_range or OverrideRange()
        self._cell: DurableCell[dict[str, Any]] = DurableCell(
            storage,
            key,
            {ROOT_FIELD: {}},
            validator=self._is_valid_state,
            version=version,
        )

    def _is_valid_state(self, state: Any) -> bool:
        return (
            isinstance(state, dict)
            and isinstance(state.get(ROOT_FIELD), dict)
            and _is_nested(state[ROOT_FIELD], self.depth, self.value_range)
        )

    @property
    def key(self) -> str:
        return self._cell.key

    @property
    def cell(self) -> DurableCell[dict[str, Any]]:
        return self._cell

    @property
    def error(self) -> PersistenceError | None:
        return self._cell.error

    @property
    def overrides(self) -> dict[str, Any]:
        """The raw nested override map (read-only view; do not mutate)."""
        return self._cell.value[ROOT_FIELD]

    # ------------------------------------------------------------------
    # Path helpers
    # ------------------------------------------------------------------

    def _check_path(self, path: Sequence[str], expected: int | None = None) -> tuple[str, ...]:
        expected = self.depth if expected is None else expected
        if len(path) != expected:
            raise TypeError(f"expected {expected} path component(s), got {len(path)}: {path!r}")
        for part in path:
            if not isinstance(part, str) or not part:
                raise TypeError(f"path components must be non-empty strings, got {part!r}")
        return tuple(path)

    @staticmethod
    def _check_index(index: Any) -> str:
        if isinstance(index, bool) or not isinstance(index, int):
            raise TypeError(f"index must be an int, got {type(index).__name__}")
        if index < 0:
            raise ValueError(f"index must be >= 0, got {index}")
        return str(index)

    def _session_map(self, path: tuple[str, ...]) -> dict[str, Any] | None:
        node: Any = self.overrides
        for part in path:
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node if isinstance(node, dict) else None

    def _write(self, path: tuple[str, ...], session_map: dict[str, int] | None) -> None:
        """Replace (or delete, when None) the session map at ``path``.

        Rebuilds every dict along the path so the previous state object is
        never mutated.
        """

        def rebuild(node: dict[str, Any], remaining: tuple[str, ...]) -> dict[str, Any]:
            head, rest = remaining[0], remaining[1:]
            updated = dict(node)
            if not rest:
                if session_map is None:
                    updated.pop(head, None)
                else:
                    updated[head] = session_map
                return updated
            child = node.get(head)
            updated[head] = rebuild(child if isinstance(child, dict) else {}, rest)
            return updated

        state = self._cell.value
        self._cell.set({**state, ROOT_FIELD: rebuild(state[ROOT_FIELD], path)})

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_value(self, *args: Any) -> int:
        """``set_value(*path, index, raw)``: store a normalized override.

        Returns:
            The value actually stored
        """
        *path_parts, index, raw = args
        path = self._check_path(path_parts)
        index_key = self._check_index(index)
        value = self.value_range.normalize(raw)
        current = self._session_map(path) or {}
        self._write(path, {**current, index_key: value})
        return value

    def set_many_for_session(self, *args: Any) -> None:
        """``set_many_for_session(*path, values_by_index)``: replace a session's map."""
        *path_parts, values_by_index = args
        path = self._check_path(path_parts)
        if not isinstance(values_by_index, Mapping):
            raise TypeError("values_by_index must be a mapping of index -> value")
        session_map = {
            self._check_index(int(index) if isinstance(index, str) else index): (
                self.value_range.normalize(value)
            )
            for index, value in values_by_index.items()
        }
        self._write(path, session_map)

    def clear_value(self, *args: Any) -> bool:
        """``clear_value(*path, index)``: drop one override so the base value applies.

        Empty parent maps are pruned. Returns False when nothing was stored.
        """
        *path_parts, index = args
        path = self._check_path(path_parts)
        index_key = self._check_index(index)
        current = self._session_map(path)
        if not current or index_key not in current:
            return False
        remaining = {k: v for k, v in current.items() if k != index_key}
        if remaining:
            self._write(path, remaining)
            return True
        self._write(path, None)
        if self.depth > 1 and not self._session_map(path[:-1]):
            self._write(path[:-1], None)
        return True

    def reset_session(self, *path_parts: str) -> None:
        """Delete every override of one session."""
        path = self._check_path(path_parts)
        if self._session_map(path) is not None:
            self._write(path, None)

    def reset_owner(self, owner: str) -> None:
        """Delete every session map under ``owner`` (multi-level stores only)."""
        if self.depth < 2:
            raise TypeError("reset_owner requires a store with depth >= 2")
        path = self._check_path((owner,), expected=1)
        if owner in self.overrides:
            self._write(path, None)

    def reset_all(self) -> None:
        self._cell.set({ROOT_FIELD: {}})

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_value(self, *args: Any) -> int | None:
        """``get_value(*path, index)``: the override, or None when the base applies."""
        *path_parts, index = args
        path = self._check_path(path_parts)
        session_map = self._session_map(path)
        if not session_map:
            return None
        value = session_map.get(self._check_index(index))
        return int(value) if value is not None else None

    def get_session_values(self, *path_parts: str) -> dict[int, int]:
        path = self._check_path(path_parts)
        session_map = self._session_map(path) or {}
        return {int(index): int(value) for index, value in session_map.items()}

    def get_owner_values(self, owner: str) -> dict[str, dict[int, int]]:
        """All session maps under ``owner`` (multi-level stores only)."""
        if self.depth != 2:
            raise TypeError("get_owner_values requires a two-level store")
        owner_map = self.overrides.get(owner)
        if not isinstance(owner_map, dict):
            return {}
        return {
            session: {int(i): int(v) for i, v in entries.items()}
            for session, entries in owner_map.items()
            if isinstance(entries, dict)
        }

    def has_overrides(self, *path_prefix: str) -> bool:
        """True if at least one entry exists under the given path prefix.

        With a full path this checks one session; with a shorter prefix, any
        session below it.
        """
        if not 1 <= len(path_prefix) <= self.depth:
            raise TypeError(f"expected 1..{self.depth} path component(s), got {len(path_prefix)}")
        node = self._session_map(tuple(path_prefix))
        return self._any_entry(node, self.depth - len(path_prefix))

    @classmethod
    def _any_entry(cls, node: Any, levels_below: int) -> bool:
        if not isinstance(node, dict):
            return False
        if levels_below == 0:
            return len(node) > 0
        return any(cls._any_entry(child, levels_below - 1) for child in node.values())

    # ------------------------------------------------------------------
    # Compose
    # ------------------------------------------------------------------

    def compose(self, *args: Any) -> list[Any]:
        """``compose(*path, base)``: overlay a session's overrides onto ``base``.

        Returns ``base`` itself when the session has no overrides; otherwise
        a new list in which overridden positions are shallow copies with
        :attr:`field` replaced and every other position is the original item.
        Overrides past the end of ``base`` are ignored.
        """
        *path_parts, base = args
        path = self._check_path(path_parts)
        session_map = self._session_map(path)
        if not session_map:
            return base

        composed = []
        for index, item in enumerate(base):
            override = session_map.get(str(index))
            if override is None:
                composed.append(item)
            else:
                composed.append({**item, self.field: int(override)})
        return composed

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def reload(self) -> None:
        self._cell.load()

    def subscribe(self, listener: Any) -> Unsubscribe:
        return self._cell.subscribe(listener)

    def close(self) -> None:
        self._cell.close()


class SessionOverrideStore(OverrideStore):
    """Per-session pose duration overrides: ``session -> pose index -> seconds``."""

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = SESSION_OVERRIDES_KEY,
        value_range: OverrideRange | None = None,
    ) -> None:
        super().__init__(storage, key, depth=1, value_range=value_range)


class ProgramOverrideStore(OverrideStore):
    """Per-program pose duration overrides: ``program -> session -> pose index -> seconds``."""

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = PROGRAM_OVERRIDES_KEY,
        value_range: OverrideRange | None = None,
    ) -> None:
        super().__init__(storage, key, depth=2, value_range=value_range)

    def reset_program(self, program_id: str) -> None:
        self.reset_owner(program_id)

    def get_program_values(self, program_id: str) -> dict[str, dict[int, int]]:
        return self.get_owner_values(program_id)
