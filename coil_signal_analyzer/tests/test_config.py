import dataclasses
import unittest
from pathlib import Path

from coil_signal_analyzer.models.config import (
    DEFAULT_N_SAMPLES,
    DEFAULT_READ_CYCLES,
    DEFAULT_REGULARIZATION,
    AnalysisConfig,
)


class TestAnalysisConfig(unittest.TestCase):
    def _cfg(self, **kw):
        base = dict(file_path="/data/rec.bin", coil_name="C1", sample_rate_hz=51200.0, base_frequency_hz=1000.0)
        base.update(kw)
        return AnalysisConfig(**base)

    def test_defaults_and_derived_sizes(self):
        cfg = self._cfg()
        self.assertEqual(cfg.regularization, DEFAULT_REGULARIZATION)
        self.assertEqual(cfg.n_samples, DEFAULT_N_SAMPLES)
        self.assertEqual(cfg.read_cycles, DEFAULT_READ_CYCLES)
        self.assertEqual(cfg.samples_per_cycle, 51)
        self.assertEqual(cfg.samples_to_read, 510)
        self.assertEqual(cfg.results_dir, Path("/data/fir_results"))

    def test_invalid_values_raise(self):
        for kw in (
            dict(sample_rate_hz=0.0),
            dict(sample_rate_hz=float("nan")),
            dict(base_frequency_hz=-1.0),
            dict(regularization=-0.1),
            dict(n_samples=1),
            dict(read_cycles=0),
        ):
            with self.subTest(**kw):
                with self.assertRaises(ValueError):
                    self._cfg(**kw)

    def test_frozen(self):
        cfg = self._cfg()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            cfg.regularization = 1.0  # type: ignore[misc]
        cfg2 = dataclasses.replace(cfg, regularization=0.1)
        self.assertEqual(cfg2.regularization, 0.1)
        self.assertEqual(cfg.regularization, DEFAULT_REGULARIZATION)

    def test_from_dict_accepts_request_keys(self):
        cfg = AnalysisConfig.from_dict(
            {
                "filePath": "/x/y.bin",
                "coilName": "RX",
                "sampleRate": "48000",
                "baseFrequency": 500,
                "stabilization": "0.05",
                "unrelated": True,
            }
        )
        self.assertEqual(cfg.file_path, "/x/y.bin")
        self.assertEqual(cfg.coil_name, "RX")
        self.assertEqual(cfg.sample_rate_hz, 48000.0)
        self.assertEqual(cfg.base_frequency_hz, 500.0)
        self.assertAlmostEqual(cfg.regularization, 0.05)

    def test_dict_round_trip(self):
        cfg = self._cfg(n_samples=512)
        self.assertEqual(AnalysisConfig.from_dict(cfg.to_dict()), cfg)

    def test_from_dict_defaults_coil_name(self):
        cfg = AnalysisConfig.from_dict({"file_path": "a.bin", "sample_rate_hz": 10.0, "base_frequency_hz": 1.0})
        self.assertEqual(cfg.coil_name, "")


if __name__ == "__main__":
    unittest.main()
