"""Append-only progress curve for the session currently on display."""

from __future__ import annotations

from typing import Any

from ..domain.models import Sample
from .extractor import extract_sample


class TimeSeriesBuffer:
    """Ordered samples extracted from one run's log."""
    def __init__(self) -> None:
        self._samples: list[Sample] = []

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def samples(self) -> list[Sample]:
        """Copy of the current samples in index order."""
        return list(self._samples)

    def values(self) -> list[float]:
        return [s.value for s in self._samples]

    def reset(self) -> None:
        """Drop every sample."""
        self._samples.clear()

    def append_incremental(self, value: float) -> Sample:
        """Append one streamed sample, indexed by the current length.

        Args:
            value (float): Sample value produced by ``extract_sample``.

        Returns:
            Sample: The appended sample.
        """
        sample = Sample(index=len(self._samples), value=value)
        self._samples.append(sample)
        return sample

    def rebuild_from_full_log(self, log_text: str) -> list[Sample]:
        """Replace the curve with the samples of a complete log.

        The result depends only on ``log_text``, so replaying a stored log
        always draws the same curve.

        Args:
            log_text (str): Full session log.

        Returns:
            list[Sample]: The rebuilt samples.
        """
        self.reset()
        rebuilt: list[Sample] = []
        for line in (log_text or "").split("\n"):
            value = extract_sample(line)
            if value is None:
                continue
            rebuilt.append(Sample(index=len(rebuilt), value=value))
        # one bulk swap instead of per-line appends
        self._samples = rebuilt
        return list(rebuilt)

    def to_payload(self) -> list[dict[str, Any]]:
        return [s.to_dict() for s in self._samples]
