"""Estimate the noise level of one location from a CSV of per-scale samples.

Accepted columns (header required):
- ``scale_index``, ``value``: index into the scales ``1..n`` (0-based), or
- ``scale``, ``value``: the scale itself; the sorted unique scales become the profile scales.

Examples
--------
python -m scale_profile_analyzer.scripts.noise_level samples.csv --min-width 2
python -m scale_profile_analyzer.scripts.noise_level samples.csv --lower-bounded --plot profile.png
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from scale_profile_analyzer.analysis.noise_level import estimate_noise_level
from scale_profile_analyzer.analysis.profile_table import plot_profile, profile_table
from scale_profile_analyzer.analysis.scale_profile import ScaleProfile
from scale_profile_analyzer.models.config import NoiseLevelConfig, ProfileDefinition

logger = logging.getLogger(__name__)


def load_profile_csv(
    path: Union[str, Path],
    n_scales: Optional[int] = None,
    store_values: bool = False,
) -> ScaleProfile:
    """Read samples from ``path`` and fold them into a new :class:`ScaleProfile`.

    Parameters
    ----------
    path:
        CSV file with ``scale_index,value`` or ``scale,value`` columns.
    n_scales:
        For ``scale_index`` files: number of scales (default: max index + 1).
    store_values:
        Keep raw samples (needed for the MEDIAN profile definition).
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(str(p))
    df = pd.read_csv(p)
    cols = {c.strip().lower(): c for c in df.columns}
    if "value" not in cols:
        raise ValueError(f"{p.name}: missing required column 'value' (got {list(df.columns)})")

    values = df[cols["value"]].to_numpy(dtype=float)
    sp = ScaleProfile()
    if "scale_index" in cols:
        idx = df[cols["scale_index"]].to_numpy()
        if idx.size and np.any(idx != np.round(idx)):
            raise ValueError(f"{p.name}: scale_index must be integer")
        idx = idx.astype(int)
        n = int(n_scales) if n_scales is not None else (int(idx.max()) + 1 if idx.size else 0)
        sp.init(n, store_values=store_values)
    elif "scale" in cols:
        scale_col = df[cols["scale"]].to_numpy(dtype=float)
        uniq = np.unique(scale_col)
        sp.init(uniq, store_values=store_values)
        idx = np.searchsorted(uniq, scale_col)
    else:
        raise ValueError(f"{p.name}: need a 'scale_index' or 'scale' column (got {list(df.columns)})")

    for i, v in zip(idx, values):
        sp.add_value(int(i), float(v))
    logger.info("loaded %d samples over %d scales from %s", values.size, len(sp), p)
    return sp


def main(argv: Optional[Sequence[str]] = None) -> int:
    import argparse
    import textwrap

    p = argparse.ArgumentParser(
        prog="python -m scale_profile_analyzer.scripts.noise_level",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """\
            Build the multiscale profile of one location from a CSV of samples and
            report its noise level (first scale of the first meaningful interval).
            """
        ),
    )
    p.add_argument("csv", help="CSV with columns scale_index,value or scale,value")
    p.add_argument("--n-scales", type=int, default=None, help="Number of scales for scale_index files")
    p.add_argument(
        "--profile-def",
        default="mean",
        choices=[m.value for m in ProfileDefinition],
        help="Reduction of the samples of each scale",
    )
    p.add_argument("--min-width", type=int, default=1, help="Minimum meaningful interval width")
    p.add_argument("--max-slope", type=float, default=-0.2, help="Maximum allowed per-step slope")
    p.add_argument("--min-slope", type=float, default=-1e10, help="Minimum allowed per-step slope")
    p.add_argument("--min-size", type=int, default=2, help="Minimum interval width for the slope fit")
    p.add_argument("--lower-bounded", action="store_true", help="Use the lower-bounded noise level")
    p.add_argument("--lower-bound-at-scale-1", type=float, default=1.0, help="Floor value at scale 1")
    p.add_argument("--lower-bound-slope", type=float, default=-2.0, help="Floor exponent")
    p.add_argument("--config", default=None, help="JSON file with NoiseLevelConfig fields (overrides flags)")
    p.add_argument("--table", action="store_true", help="Print the per-scale table")
    p.add_argument("--plot", default=None, help="Write a PNG plot of the profile to this path")
    p.add_argument("--json", action="store_true", help="Print the result as JSON")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    ns = p.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if ns.config:
        cfg = NoiseLevelConfig.from_dict(json.loads(Path(ns.config).read_text(encoding="utf-8")))
    else:
        cfg = NoiseLevelConfig(
            min_width=ns.min_width,
            max_slope=ns.max_slope,
            min_slope=ns.min_slope,
            min_size=ns.min_size,
            lower_bounded=bool(ns.lower_bounded),
            lower_bound_at_scale_1=ns.lower_bound_at_scale_1,
            lower_bound_slope=ns.lower_bound_slope,
            profile_def=ProfileDefinition.parse(ns.profile_def),
        )

    sp = load_profile_csv(
        ns.csv,
        n_scales=ns.n_scales,
        store_values=cfg.profile_def is ProfileDefinition.MEDIAN,
    )
    sp.stop_stats_saving()
    res = estimate_noise_level(sp, cfg)

    if ns.table:
        print(profile_table(sp).to_string(index=False))

    if ns.json:
        print(
            json.dumps(
                {
                    "noise_level": res.noise_level,
                    "intervals": [list(iv) for iv in res.intervals],
                    "slope_found": res.slope_found,
                    "slope": res.slope,
                    "config": res.config,
                    "warnings": list(res.warnings),
                },
                indent=2,
            )
        )
    else:
        print(f"noise level: {res.noise_level:g}")
        print(f"intervals:   {list(res.intervals)}")
        slope_s = "undefined" if res.slope is None else f"{res.slope:.6g}"
        print(f"slope:       {slope_s} ({'meaningful interval' if res.slope_found else 'whole profile'})")

    if ns.plot:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        fig, ax = plt.subplots(figsize=(6, 4))
        lb = (cfg.lower_bound_at_scale_1, cfg.lower_bound_slope) if cfg.lower_bounded else None
        plot_profile(ax, sp, intervals=list(res.intervals), lower_bound=lb)
        fig.tight_layout()
        fig.savefig(ns.plot, dpi=120)
        plt.close(fig)
        print(f"[info] wrote plot: {ns.plot}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
