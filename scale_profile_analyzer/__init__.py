"""Scale Profile Analyzer -- multiscale noise profiles and noise-level detection.

Designed for multiscale analysis of digital shapes (points of a digital
contour, pixel sites), where a quantity such as a digital length is measured
at a sequence of increasing scales.

This package provides tools for:
- Accumulating per-scale samples into statistics (mean, min, max, median)
- Building the log-log profile curve of one location
- Detecting meaningful scale intervals (flat-enough stretches of the curve)
- Estimating the noise level, optionally bounded below by an exponential floor
- Fitting the profile slope by least squares
- Exporting the profile as a DataFrame and plotting it

Key principles:
- One location per profile: no global shape knowledge
- Degenerate data is reported, never silently coerced
- "No meaningful scale" is a result (noise level 0), not an error

Main subpackages:
- analysis: ScaleProfile, meaningful-scale detection, regression, noise-level pipeline
- models: Statistic accumulator, NoiseLevelConfig, ProfileDefinition
- scripts: command-line noise-level estimation from CSV samples
"""

__all__ = []
