from .config import AnalysisConfig
from .frames import SampleWindow
from .results import DownsampledSeries, FIRResult, SpectrumResult, StackedWaveform

__all__ = [
    "AnalysisConfig",
    "SampleWindow",
    "StackedWaveform",
    "FIRResult",
    "SpectrumResult",
    "DownsampledSeries",
]
