"""
Dew point calculation.

Based on the saturation vapor pressure formula published by UK NPL
(https://www.npl.co.uk/resources/q-a/dew-point-and-relative-humidity):

    ln e_w(t) = ln 611.2 + (17.62 t) / (243.12 + t)
"""

import math
import struct

_LN_611_2 = math.log(611.2)


def to_f32(value: float) -> float:
    """Narrow a Python float to IEEE 754 single precision."""
    if math.isnan(value) or math.isinf(value):
        return value
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def f32_repr(value: float) -> float:
    """Shortest decimal that reads back as the same single-precision value."""
    value = to_f32(value)
    if math.isnan(value) or math.isinf(value) or value == 0.0:
        return value
    for precision in range(1, 10):
        candidate = float(f"{value:.{precision}g}")
        if to_f32(candidate) == value:
            return candidate
    return value


def _ln(value: float) -> float:
    # ln(0) -> -inf and ln(<0) -> nan instead of raising
    if value > 0:
        return math.log(value)
    if value == 0:
        return -math.inf
    return math.nan


def compute_dewpoint(
    temperature_celsius: float,
    relative_humidity_percent: float,
    pressure_millibar: float,
) -> float:
    """
    Compute the dew point in degrees Celsius.

    Inputs are single-precision sensor values; the math runs in double
    precision and the result is narrowed back to single precision.

    Args:
        temperature_celsius: Air temperature
        relative_humidity_percent: Relative humidity, 0-100
        pressure_millibar: Accepted for symmetry with the sensor reading, unused

    Returns:
        Dew point in degrees Celsius
    """
    temperature = float(temperature_celsius)
    humidity_ratio = float(relative_humidity_percent) / 100.0

    saturation_vapor_pressure = math.exp(
        _LN_611_2 + 17.62 * temperature / (243.12 + temperature)
    )
    ln_vapor_pressure = _ln(saturation_vapor_pressure * humidity_ratio)

    try:
        dewpoint_celsius = (1559.72 - 243.12 * ln_vapor_pressure) / (ln_vapor_pressure - 24.0354)
    except ZeroDivisionError:
        dewpoint_celsius = math.nan

    return to_f32(dewpoint_celsius)
