"""Raw indicator series math — SMA, EMA, Wilder RSI/ATR/ADX, Bollinger.

Pure functions over plain ``list[float]`` inputs, no I/O.  Every function
returns a list aligned with its input; entries before the seed period are
``float('nan')``.  Length checks are done by the callers in the
indicator modules, which know the user-facing indicator name.
"""

import math

NAN = float("nan")


def sma(values: list[float], period: int) -> list[float]:
    """Simple moving average over a sliding window of *period* values."""
    out = [NAN] * len(values)
    if len(values) < period:
        return out
    window_sum = sum(values[:period])
    out[period - 1] = window_sum / period
    for i in range(period, len(values)):
        window_sum += values[i] - values[i - period]
        out[i] = window_sum / period
    return out


def ema(values: list[float], period: int) -> list[float]:
    """Exponential moving average, seeded with the SMA of the first *period* values.

    ``EMA_today = value × k + EMA_yesterday × (1 - k)`` with
    ``k = 2 / (period + 1)``.  Leading ``nan`` entries in *values* are
    skipped, so an EMA can be layered over another indicator series.
    """
    out = [NAN] * len(values)
    start = 0
    while start < len(values) and math.isnan(values[start]):
        start += 1
    if len(values) - start < period:
        return out

    k = 2.0 / (period + 1)
    seed_index = start + period - 1
    out[seed_index] = sum(values[start : seed_index + 1]) / period
    for i in range(seed_index + 1, len(values)):
        out[i] = values[i] * k + out[i - 1] * (1 - k)
    return out


def true_range(highs: list[float], lows: list[float], closes: list[float]) -> list[float]:
    """True range per bar; index 0 has no previous close and is ``nan``.

        TR = max(high - low, |high - prev_close|, |low - prev_close|)
    """
    out = [NAN] * len(closes)
    for i in range(1, len(closes)):
        out[i] = max(
            highs[i] - lows[i],
            abs(highs[i] - closes[i - 1]),
            abs(lows[i] - closes[i - 1]),
        )
    return out


def wilder_atr(
    highs: list[float], lows: list[float], closes: list[float], period: int
) -> list[float]:
    """Wilder-smoothed Average True Range.

    Seed = mean of the first *period* true ranges (bars 1..period), then
    ``ATR = (prev × (period - 1) + TR) / period``.  First value lands on
    index *period*, so ``period + 1`` candles are needed.
    """
    tr = true_range(highs, lows, closes)
    out = [NAN] * len(closes)
    if len(closes) < period + 1:
        return out
    out[period] = sum(tr[1 : period + 1]) / period
    for i in range(period + 1, len(closes)):
        out[i] = (out[i - 1] * (period - 1) + tr[i]) / period
    return out


# ── RSI ──────────────────────────────────────────────────────────────────


def _rsi_from_avgs(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        # Flat window: no gains and no losses is a balanced market.
        return 50.0 if avg_gain == 0 else 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def wilder_rsi(closes: list[float], period: int) -> list[float]:
    """Wilder's Relative Strength Index.

    Algorithm:
        1. delta = close[i] - close[i-1]
        2. Separate gains (positive) and losses (|negative|).
        3. Seed average gain/loss = SMA of first *period* deltas.
        4. Subsequent: avg = (prev_avg × (period-1) + current) / period
        5. RSI = 100 - 100 / (1 + avg_gain / avg_loss)

    A window with neither gains nor losses yields exactly 50.
    """
    rsi = [NAN] * len(closes)
    if len(closes) < period + 1:
        return rsi

    deltas = [closes[i] - closes[i - 1] for i in range(1, len(closes))]
    gains = [max(d, 0.0) for d in deltas]
    losses = [abs(min(d, 0.0)) for d in deltas]

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    rsi[period] = _rsi_from_avgs(avg_gain, avg_loss)

    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        # deltas are offset by one against closes
        rsi[i + 1] = _rsi_from_avgs(avg_gain, avg_loss)

    return rsi


# ── ADX ──────────────────────────────────────────────────────────────────


def wilder_adx(
    highs: list[float], lows: list[float], closes: list[float], period: int
) -> tuple[list[float], list[float], list[float]]:
    """Average Directional Index with its +DI / -DI lines.

    Algorithm:
        1. +DM / -DM directional movement per bar.
        2. Wilder-smooth +DM, -DM, and TR over *period*.
        3. +DI = 100 × smoothed_+DM / smoothed_TR
        4. -DI = 100 × smoothed_-DM / smoothed_TR
        5. DX = 100 × |+DI − −DI| / (+DI + −DI)
        6. ADX = Wilder-smoothed DX over *period*.

    DI lines start at index *period*; ADX starts at ``2 × period - 1``.
    Returns ``(adx, plus_di, minus_di)``.
    """
    n = len(closes)
    adx = [NAN] * n
    plus_di = [NAN] * n
    minus_di = [NAN] * n
    if n < period + 1:
        return adx, plus_di, minus_di

    plus_dm_raw = [0.0] * n
    minus_dm_raw = [0.0] * n
    tr_raw = true_range(highs, lows, closes)

    for i in range(1, n):
        up_move = highs[i] - highs[i - 1]
        down_move = lows[i - 1] - lows[i]
        plus_dm_raw[i] = up_move if (up_move > down_move and up_move > 0) else 0.0
        minus_dm_raw[i] = down_move if (down_move > up_move and down_move > 0) else 0.0

    smoothed_plus_dm = sum(plus_dm_raw[1 : period + 1])
    smoothed_minus_dm = sum(minus_dm_raw[1 : period + 1])
    smoothed_tr = sum(tr_raw[1 : period + 1])

    dx_values: list[float] = []

    def _di_and_dx(s_pdm: float, s_mdm: float, s_tr: float) -> tuple[float, float, float]:
        if s_tr == 0:
            return 0.0, 0.0, 0.0
        pdi = 100.0 * s_pdm / s_tr
        mdi = 100.0 * s_mdm / s_tr
        di_sum = pdi + mdi
        if di_sum == 0:
            return pdi, mdi, 0.0
        return pdi, mdi, 100.0 * abs(pdi - mdi) / di_sum

    pdi, mdi, dx = _di_and_dx(smoothed_plus_dm, smoothed_minus_dm, smoothed_tr)
    plus_di[period], minus_di[period] = pdi, mdi
    dx_values.append(dx)

    for i in range(period + 1, n):
        smoothed_plus_dm = smoothed_plus_dm - smoothed_plus_dm / period + plus_dm_raw[i]
        smoothed_minus_dm = smoothed_minus_dm - smoothed_minus_dm / period + minus_dm_raw[i]
        smoothed_tr = smoothed_tr - smoothed_tr / period + tr_raw[i]
        pdi, mdi, dx = _di_and_dx(smoothed_plus_dm, smoothed_minus_dm, smoothed_tr)
        plus_di[i], minus_di[i] = pdi, mdi
        dx_values.append(dx)

    # dx_values[0] corresponds to candle index *period*
    if len(dx_values) < period:
        return adx, plus_di, minus_di

    adx_prev = sum(dx_values[:period]) / period
    adx[2 * period - 1] = adx_prev
    for j in range(period, len(dx_values)):
        adx_prev = (adx_prev * (period - 1) + dx_values[j]) / period
        adx[period + j] = adx_prev

    return adx, plus_di, minus_di


# ── Bollinger Bands ──────────────────────────────────────────────────────


def bollinger(
    closes: list[float], period: int, std_dev: float
) -> tuple[list[float], list[float], list[float]]:
    """Bollinger Bands with a population standard deviation.

    Middle = SMA(close, *period*)
    Upper  = middle + *std_dev* × σ
    Lower  = middle − *std_dev* × σ

    A perfectly flat window has σ = 0 and all three bands coincide.
    Returns ``(upper, middle, lower)``.
    """
    n = len(closes)
    upper = [NAN] * n
    middle = [NAN] * n
    lower = [NAN] * n

    for i in range(period - 1, n):
        window = closes[i - period + 1 : i + 1]
        mean = sum(window) / period
        variance = sum((x - mean) ** 2 for x in window) / period
        sigma = math.sqrt(variance)

        middle[i] = mean
        upper[i] = mean + std_dev * sigma
        lower[i] = mean - std_dev * sigma

    return upper, middle, lower
