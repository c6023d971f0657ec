#!/usr/bin/env python3
"""Basic usage: detect peaks in a synthetic mass spectrum.

This example builds a spectrum of Gaussian peaks over a noisy baseline, runs
the CWT detector, and prints the major peaks with their refined widths.
"""

import numpy as np

from mswavelet import peak_detection_cwt

# Synthetic spectrum: 5 Gaussian peaks on a noisy baseline
rng = np.random.default_rng(0)
n = 6000
t = np.arange(n, dtype=float)
spectrum = 1.0 + rng.normal(0.0, 0.05, size=n)
PEAKS = [(800, 6, 12.0), (1900, 9, 6.0), (3100, 5, 9.0), (4200, 12, 4.0), (5200, 7, 7.5)]
for center, width, height in PEAKS:
    spectrum += height * np.exp(-0.5 * ((t - center) / width) ** 2)

result = peak_detection_cwt(spectrum, case_info={"SNR.Th": 3, "tuneIn": True})

print(f"Detected {len(result.major_peak_info)} peaks:")
for peak, refined in zip(result.major_peak_info.peaks, result.refined_peaks, strict=True):
    print(
        f"  index = {peak.index:5d}  scale = {peak.scale:5.1f}  SNR = {peak.snr:7.1f}"
        f"  width = {refined.width:5.1f}  area = {refined.area:8.2f}"
    )
