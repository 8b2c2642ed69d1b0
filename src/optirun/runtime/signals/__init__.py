"""Gap signal extraction and the progress time series."""

from .extractor import extract_sample
from .series import TimeSeriesBuffer

__all__ = ["extract_sample", "TimeSeriesBuffer"]
