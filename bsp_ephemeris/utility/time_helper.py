"""
Time Utilities
==============

Parsing of the epochs and steps given on the command line, and formatting of
time offsets.
"""
import re
import numpy as np

from datetime import datetime


STEP_UNITS = {
  's' : 1.0,
  'm' : 60.0,
  'h' : 3600.0,
  'd' : 86400.0,
}
STEP_PATTERN = re.compile(r'^\s*([0-9]*\.?[0-9]+(?:[eE][+-]?[0-9]+)?)\s*([smhd]?)\s*$', re.IGNORECASE)
END_SNAP_FRACTION = 1.0e-3


def format_time_offset(
  seconds : float,
) -> str:
  """
  Format a time offset in seconds as a human-readable string.

  Examples:
    12345.678 -> "+0d 03h 25m 45.678s"
   -98765.432 -> "-1d 03h 26m 05.432s"

  Input:
  ------
    seconds : float
      Time offset in seconds (can be positive or negative).

  Output:
  -------
    str
      Formatted string like "+47d 21h 30m 20.357s".
  """
  sign    = '+' if seconds >= 0 else '-'
  abs_sec = abs(seconds)

  days    = int(abs_sec // 86400)
  hours   = int((abs_sec % 86400) // 3600)
  minutes = int((abs_sec % 3600) // 60)
  secs    = abs_sec % 60

  return f"{sign}{days}d {hours:02d}h {minutes:02d}m {secs:06.3f}s"


def parse_time(
  time_str : str,
) -> datetime:
  """
  Parse a UTC time string into a naive datetime object.

  Accepted formats include:
  - ISO 8601 with 'T' separator: "2025-10-01T00:00:00"
  - ISO 8601 with 'Z' suffix: "2025-10-01T00:00:00Z"
  - Space-separated: "2025-10-01 00:00:00"
  - Date only: "2025-10-01"
  - Day of year: "2025-274T00:00:00"

  Input:
  ------
    time_str : str
      Time string to parse.

  Output:
  -------
    datetime
      Parsed datetime object.
  """
  time_str = time_str.strip()
  if time_str.endswith('Z'):
    time_str = time_str[:-1]

  try:
    return datetime.fromisoformat(time_str)
  except ValueError:
    formats = [
      "%Y-%m-%d %H:%M:%S",
      "%Y-%m-%d %H:%M:%S.%f",
      "%Y-%jT%H:%M:%S",
      "%Y-%jT%H:%M:%S.%f",
    ]
    for fmt in formats:
      try:
        return datetime.strptime(time_str, fmt)
      except ValueError:
        continue
    raise ValueError(f"Cannot parse time string: {time_str}")


def parse_step(
  step_str : str,
) -> float:
  """
  Parse a time step such as "3600", "90s", "30m", "6h" or "1d" into seconds.

  Input:
  ------
    step_str : str
      Number with an optional unit suffix (s, m, h, d). Seconds by default.

  Output:
  -------
    step_s : float
      Step in seconds, strictly positive.
  """
  match = STEP_PATTERN.match(str(step_str))
  if match is None:
    raise ValueError(f"Cannot parse time step: {step_str}")
  value, unit = match.groups()
  step_s = float(value) * STEP_UNITS[unit.lower() or 's']
  if step_s <= 0.0:
    raise ValueError(f"Time step must be positive: {step_str}")
  return step_s


def build_epoch_grid(
  start_et : float,
  end_et   : float,
  step_s   : float,
) -> np.ndarray:
  """
  Epochs from start to end, both included, spaced by a step.

  Input:
  ------
    start_et : float
      First epoch [s past J2000].
    end_et : float
      Last epoch [s past J2000], not before start_et.
    step_s : float
      Spacing [s]. The last interval is shorter when the span is not a
      multiple of the step. A last epoch within a thousandth of a step of
      the end is moved onto the end.

  Output:
  -------
    epochs : np.ndarray
      Increasing epochs.
  """
  if end_et < start_et:
    raise ValueError(f"End epoch {end_et} is before start epoch {start_et}")
  if step_s <= 0.0:
    raise ValueError(f"Time step must be positive, got {step_s}")

  n_steps   = int(np.floor((end_et - start_et) / step_s + 1.0e-9))
  epochs    = start_et + step_s * np.arange(n_steps + 1)
  remainder = end_et - epochs[-1]
  # A UTC span converts to a few microseconds more or less than its nominal length in ET
  if n_steps > 0 and remainder <= END_SNAP_FRACTION * step_s:
    epochs[-1] = end_et
  elif remainder > 0.0:
    epochs = np.append(epochs, end_et)
  return epochs
