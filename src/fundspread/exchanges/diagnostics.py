"""Diagnostics sinks that adapters report skipped instruments to."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Protocol


class Diagnostics(Protocol):
    """Observer for adapter decisions."""

    def skipped(self, native_symbol: object, reason: str) -> None:
        """An instrument was dropped for ``reason``."""
        ...

    def rejected(self, reason: str) -> None:
        """A whole response envelope was discarded."""
        ...


class NullDiagnostics:
    """Sink that ignores everything."""

    def skipped(self, native_symbol: object, reason: str) -> None:
        pass

    def rejected(self, reason: str) -> None:
        pass


NULL_DIAGNOSTICS = NullDiagnostics()


@dataclass
class DiagnosticsCounter:
    """Sink that counts skip reasons and keeps envelope rejections."""

    skips: Counter = field(default_factory=Counter)
    rejections: list[str] = field(default_factory=list)
    samples: dict[str, list[str]] = field(default_factory=dict)
    sample_size: int = 3

    def skipped(self, native_symbol: object, reason: str) -> None:
        self.skips[reason] += 1
        bucket = self.samples.setdefault(reason, [])
        if len(bucket) < self.sample_size:
            bucket.append(str(native_symbol))

    def rejected(self, reason: str) -> None:
        self.rejections.append(reason)

    @property
    def total_skipped(self) -> int:
        return sum(self.skips.values())

    def summary(self) -> str:
        if self.rejections:
            return "rejected: " + "; ".join(self.rejections)
        if not self.skips:
            return "no instruments skipped"
        parts = [
            f"{reason}={count} (e.g. {', '.join(self.samples.get(reason, []))})"
            for reason, count in self.skips.most_common()
        ]
        return "skipped " + ", ".join(parts)
