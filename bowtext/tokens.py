"""bowtext/tokens.py
──────────────────────────────────────────────────────────────────
Token table: interns string tokens as sequential integer ids for
vector-space models (bag-of-words features for a linear classifier).

  • open   – unseen tokens get the next id, every lookup bumps its count
  • frozen – lookups are read-only, unseen tokens resolve to None

Tables persist to a plain text file, one `<id> <count> <key>` line per
token. A loaded table is always frozen.
"""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

log = logging.getLogger(__name__)

PathLike = Union[str, Path]

# liblinear can't use id 0, so features start at one unless told otherwise
DEFAULT_OFFSET = 1


class TokenFileError(ValueError):
    """A persisted token file contains a line that can't be parsed."""


class TokenTable:
    """Maps tokens (optionally namespaced by a prefix) to unique ids.

    Ids are handed out in strictly increasing order starting at ``offset``
    and are never reused, not even after :meth:`limit` drops entries.
    All access goes through one lock, so a table can be shared between
    tokenizers running on different threads.
    """

    def __init__(self, offset: int = DEFAULT_OFFSET):
        if offset < 0:
            raise ValueError(f"offset must be >= 0, got {offset}")
        self._offset = offset
        self._next_id = offset
        self._frozen = False
        # key -> [id, count]; dict order is insertion order
        self._tokens: Dict[str, List[int]] = {}
        self._lock = threading.RLock()

    @classmethod
    def from_file(cls, path: PathLike, offset: int = DEFAULT_OFFSET) -> "TokenTable":
        table = cls(offset=offset)
        table.load(path)
        return table

    # state ------------------------------------------------------------
    @property
    def offset(self) -> int:
        return self._offset

    @property
    def next_id(self) -> int:
        """Id the next unseen token will receive."""
        return self._next_id

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Stop assigning ids to new tokens."""
        self._frozen = True

    def thaw(self) -> None:
        """Allow new tokens to be added again."""
        self._frozen = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._tokens

    def __repr__(self) -> str:
        return (f"TokenTable(size={len(self)}, offset={self._offset}, "
                f"next_id={self._next_id}, frozen={self._frozen})")

    # lookup -----------------------------------------------------------
    def get(self, token: Optional[str], prefix: str = "") -> Optional[int]:
        """Return the id for *token*, adding it first when the table is open.

        Blank tokens return None. On an open table this always returns an
        id and records one more occurrence; on a frozen table unknown
        tokens return None and nothing is modified.
        """
        if not token or not token.strip():
            return None
        key = prefix + token
        with self._lock:
            if self._frozen:
                entry = self._tokens.get(key)
                return entry[0] if entry else None

            entry = self._tokens.get(key)
            if entry is None:
                entry = self._tokens[key] = [self._next_id, 0]
                self._next_id += 1
            entry[1] += 1
            return entry[0]

    def count(self, token: str, prefix: str = "") -> int:
        """Occurrences recorded for *token* (0 when unknown)."""
        with self._lock:
            entry = self._tokens.get(prefix + token)
            return entry[1] if entry else 0

    def find(self, index: int, prefix: Optional[str] = None) -> Optional[str]:
        """Return the token with id *index*, or None.

        The table is keyed by token, so this is a linear scan. With a
        *prefix* only a token in that namespace matches, and the prefix
        is removed from the result.
        """
        with self._lock:
            for key, (i, _) in self._tokens.items():
                if i != index:
                    continue
                if prefix is None:
                    return key
                if key.startswith(prefix):
                    return key[len(prefix):]
                return None
        return None

    def indexes(self) -> List[int]:
        """Ids of all current tokens, in table order (not sorted)."""
        with self._lock:
            return [i for i, _ in self._tokens.values()]

    def items(self) -> List[Tuple[str, int, int]]:
        """(key, id, count) for all current tokens, in table order."""
        with self._lock:
            return [(key, i, n) for key, (i, n) in self._tokens.items()]

    # pruning ----------------------------------------------------------
    def limit(self, max_size: Optional[int] = None,
              occurrence: Optional[int] = None) -> int:
        """Drop infrequent tokens and return how many are left.

        First removes tokens seen fewer than *occurrence* times, then keeps
        the *max_size* most frequent ones (ties keep table order). Removed
        ids are retired for good.
        """
        if max_size is not None and max_size < 0:
            raise ValueError(f"max_size must be >= 0, got {max_size}")
        if occurrence is not None and occurrence < 0:
            raise ValueError(f"occurrence must be >= 0, got {occurrence}")

        with self._lock:
            before = len(self._tokens)
            if occurrence is not None:
                self._tokens = {k: e for k, e in self._tokens.items() if e[1] >= occurrence}
            if max_size is not None:
                ranked = sorted(self._tokens.items(), key=lambda kv: -kv[1][1])
                self._tokens = dict(ranked[:max_size])
            log.debug("limited token table from %d to %d entries", before, len(self._tokens))
            return len(self._tokens)

    # persistence ------------------------------------------------------
    def save(self, path: PathLike) -> None:
        """Write all tokens to *path*, one ``<id> <count> <key>`` per line."""
        with self._lock, open(path, "w", encoding="utf-8", newline="\n") as f:
            for key, (i, n) in self._tokens.items():
                f.write(f"{i} {n} {key}\n")
            log.debug("saved %d tokens to %s", len(self._tokens), path)

    def load(self, path: PathLike) -> None:
        """Replace all tokens with those stored in *path* and freeze.

        ``next_id`` moves past the highest loaded id, so thawing a loaded
        table never hands out an id that is already taken.
        """
        tokens: Dict[str, List[int]] = {}
        with open(path, encoding="utf-8", newline="\n") as f:
            for lineno, line in enumerate(f, 1):
                if not line.strip():
                    continue
                parts = line.rstrip().split(None, 2)
                if len(parts) != 3:
                    raise TokenFileError(f"{path}:{lineno}: expected '<id> <count> <token>'")
                try:
                    i, n = int(parts[0]), int(parts[1])
                except ValueError as exc:
                    raise TokenFileError(f"{path}:{lineno}: {exc}") from exc
                tokens[parts[2].strip()] = [i, n]

        with self._lock:
            self._tokens = tokens
            if tokens:
                self._next_id = max(self._next_id, max(i for i, _ in tokens.values()) + 1)
            self._frozen = True
        log.debug("loaded %d tokens from %s", len(tokens), path)
