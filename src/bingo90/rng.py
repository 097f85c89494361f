from __future__ import annotations

import hashlib
import random
import secrets
from dataclasses import dataclass
from typing import List, Optional, Sequence, TypeVar

try:  # optional dependency
    import numpy as _np  # type: ignore
except ImportError:  # pragma: no cover - optional
    _np = None

T = TypeVar("T")

ENGINES = ("py_random", "numpy_pcg64", "system")


@dataclass
class RandomSource:
    engine: str

    def choice(self, seq: Sequence[T]) -> T:
        raise NotImplementedError

    def shuffle(self, arr: List[T]) -> None:
        raise NotImplementedError

    def sample(self, seq: Sequence[T], k: int) -> List[T]:
        raise NotImplementedError


class PyRandomSource(RandomSource):
    def __init__(self, seed: int):
        super().__init__(engine="py_random")
        self._rng = random.Random(seed)

    def choice(self, seq: Sequence[T]) -> T:
        return self._rng.choice(list(seq))

    def shuffle(self, arr: List[T]) -> None:
        self._rng.shuffle(arr)

    def sample(self, seq: Sequence[T], k: int) -> List[T]:
        return self._rng.sample(list(seq), k)


class SystemRandomSource(PyRandomSource):
    """OS entropy; not reproducible. Used for live card sales."""

    def __init__(self, seed: int = 0):
        RandomSource.__init__(self, engine="system")
        self._rng = random.SystemRandom()


class NumpyPCG64Source(RandomSource):  # pragma: no cover - covered when numpy present
    def __init__(self, seed: int):
        if _np is None:
            raise RuntimeError("numpy is not installed; install bingo90[pcg]")
        super().__init__(engine="numpy_pcg64")
        self._rng = _np.random.Generator(_np.random.PCG64(seed))

    def choice(self, seq: Sequence[T]) -> T:
        return seq[int(self._rng.integers(0, len(seq)))]

    def shuffle(self, arr: List[T]) -> None:
        # permute indices so element types survive (numpy would coerce ints)
        order = self._rng.permutation(len(arr))
        arr[:] = [arr[int(i)] for i in order]

    def sample(self, seq: Sequence[T], k: int) -> List[T]:
        idxs = self._rng.choice(len(seq), size=k, replace=False)
        return [seq[int(i)] for i in idxs]


def create_rng(engine: str, seed: Optional[int] = None) -> RandomSource:
    engine = (engine or "py_random").strip().lower()
    if engine == "system":
        return SystemRandomSource()
    if seed is None:
        seed = new_seed()
    if engine == "py_random":
        return PyRandomSource(seed)
    if engine == "numpy_pcg64":
        return NumpyPCG64Source(seed)
    raise ValueError(f"Unsupported RNG engine: {engine} (expected one of: {', '.join(ENGINES)})")


def new_seed() -> int:
    return secrets.randbits(63)


def derive_seed(base_seed: int, index: int, purpose: str) -> int:
    """Derive a per-task seed from base seed, index, and purpose using sha256.

    Returns a 63-bit positive integer suitable for seeding common RNGs.
    """
    s = f"{base_seed}|{index}|{purpose}".encode("utf-8")
    digest = hashlib.sha256(s).digest()
    return int.from_bytes(digest[:8], byteorder="big") & ((1 << 63) - 1)
