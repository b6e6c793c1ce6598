"""Information set store: cumulative regrets and strategy weights.

All statistics live in two contiguous float64 slabs (regrets and strategy
weights). Each information set owns a run of slots, one per known action,
and is exposed as a RegretTableEntry view over that run. Solvers that work
action by action use the entry API; vectorized solvers index the slabs
directly through slot indices.

File Format (save/load):
- <path>: .npz with counts (actions per entry), regret_sum, strategy_sum
  and meta (format version); numeric arrays only
- <path>.keys.pkl.gz: gzip pickle of the ordered keys and action lists
"""

from __future__ import annotations

import gzip
import logging
import os
import pickle
from pathlib import Path
from typing import Hashable, Iterable, Iterator, Sequence

import numpy as np
import numpy.typing as npt

from scrabcfr.cfr.regret_matching import regret_matching

logger = logging.getLogger(__name__)

STORE_FORMAT_VERSION = 1


class InconsistentInformationSetError(ValueError):
    """Raised when one information set key is seen with different legal actions."""


class RegretTableEntry:
    """View of a single information set's statistics.

    Attributes:
        key: Information set key
        actions: Known actions, in slot order
        start: First slot of this entry in the store slabs
    """

    __slots__ = ("_store", "key", "actions", "_index", "start")

    def __init__(self, store: InformationSetStore, key: str, start: int, actions: Sequence[Hashable] = ()):
        self._store = store
        self.key = key
        self.start = start
        self.actions: list[Hashable] = list(actions)
        self._index = {action: i for i, action in enumerate(self.actions)}
        if len(self._index) != len(self.actions):
            raise InconsistentInformationSetError(f"Duplicate actions for information set {key!r}")

    def __len__(self) -> int:
        return len(self.actions)

    def __contains__(self, action: Hashable) -> bool:
        return action in self._index

    def index(self, action: Hashable) -> int:
        return self._index[action]

    @property
    def regret_sum(self) -> npt.NDArray[np.float64]:
        """Writable view of the cumulative regrets."""
        return self._store._regret[self.start : self.start + len(self.actions)]

    @regret_sum.setter
    def regret_sum(self, values: npt.NDArray[np.float64]) -> None:
        # Augmented assignment writes back through the slab
        self._store._regret[self.start : self.start + len(self.actions)] = values

    @property
    def strategy_sum(self) -> npt.NDArray[np.float64]:
        """Writable view of the cumulative strategy weights."""
        return self._store._weight[self.start : self.start + len(self.actions)]

    @strategy_sum.setter
    def strategy_sum(self, values: npt.NDArray[np.float64]) -> None:
        self._store._weight[self.start : self.start + len(self.actions)] = values

    def slot_indices(self) -> npt.NDArray[np.int64]:
        return np.arange(self.start, self.start + len(self.actions), dtype=np.int64)

    def current_strategy(self) -> npt.NDArray[np.float64]:
        """Regret-matching strategy over the known actions."""
        return regret_matching(self.regret_sum)

    def average_strategy(self) -> npt.NDArray[np.float64]:
        """Normalized strategy weights, uniform while nothing is accumulated."""
        weights = self.strategy_sum
        total = weights.sum()
        if total > 0.0:
            return weights / total
        if len(weights) == 0:
            return np.zeros(0, dtype=np.float64)
        return np.full(len(weights), 1.0 / len(weights), dtype=np.float64)

    def __repr__(self) -> str:
        return f"RegretTableEntry(key={self.key!r}, actions={len(self.actions)})"


class InformationSetStore:
    """Mapping from information set key to regret and strategy statistics.

    Entries are created lazily and never deleted; the store lives for one
    training run and is handed explicitly to every solver. It is not safe
    for concurrent use.

    Example:
        store = InformationSetStore()
        store.accumulate_regret("X--------", 4, 0.5)
        store.current_strategy("X--------")   # {4: 1.0}
        store.save("ttt_strategy.npz")
        restored = InformationSetStore.load("ttt_strategy.npz")
    """

    def __init__(self, initial_capacity: int = 1024):
        capacity = max(1, initial_capacity)
        self._regret = np.zeros(capacity, dtype=np.float64)
        self._weight = np.zeros(capacity, dtype=np.float64)
        self._size = 0
        self._entries: dict[str, RegretTableEntry] = {}
        # Bumped whenever an existing entry moves to new slots
        self.layout_version = 0

    # ------------------------------------------------------------------
    # Slab management
    # ------------------------------------------------------------------

    @property
    def num_slots(self) -> int:
        return self._size

    @property
    def regret_sum(self) -> npt.NDArray[np.float64]:
        """Writable view of all regret slots."""
        return self._regret[: self._size]

    @property
    def strategy_sum(self) -> npt.NDArray[np.float64]:
        """Writable view of all strategy weight slots."""
        return self._weight[: self._size]

    def _ensure_capacity(self, needed: int) -> None:
        capacity = len(self._regret)
        if needed <= capacity:
            return
        while capacity < needed:
            capacity *= 2
        regret = np.zeros(capacity, dtype=np.float64)
        weight = np.zeros(capacity, dtype=np.float64)
        regret[: self._size] = self._regret[: self._size]
        weight[: self._size] = self._weight[: self._size]
        self._regret = regret
        self._weight = weight

    def _allocate(self, num_slots: int) -> int:
        self._ensure_capacity(self._size + num_slots)
        start = self._size
        self._size += num_slots
        return start

    def _extend(self, entry: RegretTableEntry, new_actions: Sequence[Hashable]) -> None:
        """Append zero-initialized actions to an entry, relocating it if needed."""
        old_count = len(entry.actions)
        if entry.start + old_count == self._size:
            self._allocate(len(new_actions))
        else:
            start = self._allocate(old_count + len(new_actions))
            old = slice(entry.start, entry.start + old_count)
            self._regret[start : start + old_count] = self._regret[old]
            self._weight[start : start + old_count] = self._weight[old]
            self._regret[old] = 0.0
            self._weight[old] = 0.0
            entry.start = start
            self.layout_version += 1

        for action in new_actions:
            entry._index[action] = len(entry.actions)
            entry.actions.append(action)

    # ------------------------------------------------------------------
    # Entry access
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def keys(self) -> list[str]:
        return list(self._entries)

    def entry(self, key: str) -> RegretTableEntry:
        """Get an existing entry (KeyError if the key was never visited)."""
        return self._entries[key]

    def get_or_create(self, key: str, actions: Iterable[Hashable] = ()) -> RegretTableEntry:
        """Get the entry for a key, creating it with zero statistics if new.

        Args:
            key: Information set key
            actions: Legal actions at the information set; unknown ones are
                added with zero statistics

        Returns:
            The entry for the key

        Raises:
            InconsistentInformationSetError: If actions omits an action the
                entry already knows
        """
        actions = list(actions)
        entry = self._entries.get(key)
        if entry is None:
            entry = RegretTableEntry(self, key, self._allocate(len(actions)), actions)
            self._entries[key] = entry
            return entry

        if actions:
            given = set(actions)
            missing = [a for a in entry.actions if a not in given]
            if missing:
                raise InconsistentInformationSetError(
                    f"Information set {key!r} was seen with actions {missing} "
                    f"that are not legal here"
                )
            new_actions = [a for a in actions if a not in entry]
            if new_actions:
                self._extend(entry, new_actions)
        return entry

    def _slot(self, key: str, action: Hashable) -> int:
        entry = self.get_or_create(key)
        if action not in entry:
            self._extend(entry, [action])
        return entry.start + entry.index(action)

    # ------------------------------------------------------------------
    # Accumulation
    # ------------------------------------------------------------------

    def accumulate_regret(self, key: str, action: Hashable, delta: float) -> None:
        """Add delta to the cumulative regret of one action."""
        # _slot may grow the slabs, so resolve it before indexing them
        slot = self._slot(key, action)
        self._regret[slot] += delta

    def accumulate_strategy(self, key: str, action: Hashable, weight: float) -> None:
        """Add a non-negative weight to the cumulative strategy of one action."""
        if weight < 0.0:
            raise ValueError(f"Strategy weight must be non-negative, got {weight}")
        slot = self._slot(key, action)
        self._weight[slot] += weight

    def accumulate_regrets(self, key: str, deltas: npt.NDArray[np.float64]) -> None:
        """Add one regret delta per known action (in entry order)."""
        entry = self._entries[key]
        if len(deltas) != len(entry):
            raise ValueError(f"Expected {len(entry)} regret deltas for {key!r}, got {len(deltas)}")
        entry.regret_sum += deltas

    def accumulate_strategies(self, key: str, weights: npt.NDArray[np.float64]) -> None:
        """Add one non-negative strategy weight per known action (in entry order)."""
        entry = self._entries[key]
        if len(weights) != len(entry):
            raise ValueError(f"Expected {len(entry)} strategy weights for {key!r}, got {len(weights)}")
        if np.any(weights < 0.0):
            raise ValueError(f"Strategy weights must be non-negative for {key!r}")
        entry.strategy_sum += weights

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def current_strategy(self, key: str) -> dict[Hashable, float]:
        """Regret-matching strategy of an information set."""
        entry = self._entries[key]
        return dict(zip(entry.actions, entry.current_strategy().tolist()))

    def average_strategy(self, key: str) -> dict[Hashable, float]:
        """Time-averaged strategy of an information set.

        Raises:
            KeyError: If the key was never visited
        """
        entry = self._entries[key]
        return dict(zip(entry.actions, entry.average_strategy().tolist()))

    def all_average_strategies(self) -> dict[str, dict[Hashable, float]]:
        return {key: self.average_strategy(key) for key in self._entries}

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def contents(self) -> tuple[list[str], list[list[Hashable]], npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """Compact copy of the store: keys, actions, regrets, strategy weights.

        Slot order follows key insertion order, independent of any
        relocations that happened while the store grew.
        """
        keys = list(self._entries)
        actions = [list(self._entries[k].actions) for k in keys]
        if keys:
            regret = np.concatenate([self._entries[k].regret_sum for k in keys])
            weight = np.concatenate([self._entries[k].strategy_sum for k in keys])
        else:
            regret = np.zeros(0, dtype=np.float64)
            weight = np.zeros(0, dtype=np.float64)
        return keys, actions, regret, weight

    @staticmethod
    def keys_path(path: str | Path) -> Path:
        path = Path(path)
        return path.with_name(path.name + ".keys.pkl.gz")

    def save(self, path: str | Path) -> None:
        """Write the store to path (+ keys side file), atomically.

        Args:
            path: Destination .npz file
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        keys, actions, regret, weight = self.contents()

        tmp_path = path.with_name(path.name + ".tmp")
        with open(tmp_path, "wb") as f:
            np.savez_compressed(
                f,
                counts=np.asarray([len(a) for a in actions], dtype=np.int64),
                regret_sum=regret,
                strategy_sum=weight,
                meta=np.asarray([STORE_FORMAT_VERSION], dtype=np.int64),
            )

        keys_path = self.keys_path(path)
        tmp_keys_path = keys_path.with_name(keys_path.name + ".tmp")
        with gzip.open(tmp_keys_path, "wb") as f:
            pickle.dump({"keys": keys, "actions": actions}, f)

        os.replace(tmp_path, path)
        os.replace(tmp_keys_path, keys_path)
        logger.info(f"Saved {len(keys)} information sets to {path}")

    @classmethod
    def load(cls, path: str | Path) -> InformationSetStore:
        """Read a store written by save().

        Raises:
            FileNotFoundError: If either file is missing
            ValueError: If the files are from another format version or inconsistent
        """
        path = Path(path)
        keys_path = cls.keys_path(path)
        if not path.exists():
            raise FileNotFoundError(f"Strategy file not found: {path}")
        if not keys_path.exists():
            raise FileNotFoundError(f"Strategy keys file not found: {keys_path}")

        with np.load(path, allow_pickle=False) as data:
            version = int(data["meta"][0])
            if version != STORE_FORMAT_VERSION:
                raise ValueError(f"Unsupported strategy file version: {version}")
            counts = data["counts"]
            regret = data["regret_sum"]
            weight = data["strategy_sum"]

        with gzip.open(keys_path, "rb") as f:
            names = pickle.load(f)
        keys, actions = names["keys"], names["actions"]

        if len(keys) != len(counts) or [len(a) for a in actions] != counts.tolist():
            raise ValueError(f"Strategy file {path} does not match its keys file")
        if int(counts.sum()) != len(regret) or len(regret) != len(weight):
            raise ValueError(f"Strategy file {path} has inconsistent array sizes")

        store = cls(initial_capacity=len(regret))
        for key, entry_actions in zip(keys, actions):
            store.get_or_create(key, entry_actions)
        store._regret[: len(regret)] = regret
        store._weight[: len(weight)] = weight
        logger.info(f"Loaded {len(keys)} information sets from {path}")
        return store
