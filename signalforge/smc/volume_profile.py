"""Volume profile — volume-by-price histogram, POC and value area.

Each candle contributes its whole volume to the bin containing its
typical price ``(H + L + C) / 3``.  Bins are equal-width over
``[min low, max high]`` of the window.
"""

from typing import Optional, Sequence

import numpy as np

from signalforge.market.models import Candle
from signalforge.smc.models import VolumeProfile

HVN_FACTOR = 1.5
LVN_FACTOR = 0.5


def build_volume_profile(
    candles: Sequence[Candle], bin_count: int = 24, value_area_pct: float = 0.70
) -> Optional[VolumeProfile]:
    """Histogram the window and derive POC, value area, HVN and LVN levels.

    Value area grows outward from the POC bin one bin at a time toward
    the heavier neighbour (the upper one on a tie) until it holds at least
    *value_area_pct* of the volume; its bounds are bin edges.

    Returns ``None`` for an empty window or one without any volume.
    """
    if not candles:
        return None

    lows = np.array([c.low for c in candles], dtype=float)
    highs = np.array([c.high for c in candles], dtype=float)
    typical = np.array([c.typical_price for c in candles], dtype=float)
    volumes = np.array([c.volume for c in candles], dtype=float)

    total = float(volumes.sum())
    if total <= 0:
        return None

    price_low, price_high = float(lows.min()), float(highs.max())
    n_bins = bin_count if price_high > price_low else 1
    edges = np.linspace(price_low, price_high, n_bins + 1)

    # Right-closed last bin so the max high lands in range.
    index = np.clip(np.searchsorted(edges, typical, side="right") - 1, 0, n_bins - 1)
    bin_volume = np.bincount(index, weights=volumes, minlength=n_bins)
    centers = (edges[:-1] + edges[1:]) / 2

    poc_index = int(np.argmax(bin_volume))  # first maximum = lowest price
    lo, hi = poc_index, poc_index
    area_volume = float(bin_volume[poc_index])
    target = value_area_pct * total
    while area_volume < target and (lo > 0 or hi < n_bins - 1):
        below = float(bin_volume[lo - 1]) if lo > 0 else -1.0
        above = float(bin_volume[hi + 1]) if hi < n_bins - 1 else -1.0
        if above >= below:
            hi += 1
            area_volume += above
        else:
            lo -= 1
            area_volume += below

    occupied = bin_volume[bin_volume > 0]
    avg = float(occupied.mean())
    hvn = centers[bin_volume > avg * HVN_FACTOR]
    lvn = centers[(bin_volume > 0) & (bin_volume < avg * LVN_FACTOR)]

    return VolumeProfile(
        poc=float(centers[poc_index]),
        value_area_high=float(edges[hi + 1]),
        value_area_low=float(edges[lo]),
        bins=tuple(
            (float(edges[i]), float(edges[i + 1]), float(bin_volume[i]))
            for i in range(n_bins)
        ),
        total_volume=total,
        value_area_volume=area_volume,
        hvn_levels=tuple(float(x) for x in hvn),
        lvn_levels=tuple(float(x) for x in lvn),
    )
