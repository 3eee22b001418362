import matplotlib
matplotlib.use('Agg')

import matplotlib.pyplot as plt
import numpy             as np

from datetime          import datetime, timedelta
from pathlib           import Path
from typing            import Optional, Union
from matplotlib.figure import Figure

from bsp_ephemeris.model.constants import CONVERTER


def plot_state_history(
  epochs   : np.ndarray,
  states   : np.ndarray,
  target   : str,
  observer : str,
  frame    : str  = "J2000",
  epoch_dt : Optional[datetime] = None,
) -> Figure:
  """
  Plot the position components and the range of a target over time.

  Input:
  ------
    epochs : np.ndarray (n,)
      Epochs [s past J2000].
    states : np.ndarray (n, 6)
      Position [km] and velocity [km/s] relative to the observer.
    target, observer : str
      Body labels.
    frame : str
      Frame label.
    epoch_dt : datetime, optional
      UTC time of the first epoch. Adds UTC labels to the bottom axis.

  Output:
  -------
    matplotlib.figure.Figure
      Figure with the position components (top) and the range (bottom).
  """
  time_d  = (epochs - epochs[0]) / CONVERTER.SEC_PER_DAY
  range_v = np.linalg.norm(states[:, 0:3], axis=1)

  fig, (ax_pos, ax_range) = plt.subplots(2, 1, figsize=(12, 8), sharex=True)
  fig.suptitle(f"{target} relative to {observer} ({frame})")

  for i, label in enumerate(['x', 'y', 'z']):
    ax_pos.plot(time_d, states[:, i], label=label)
  ax_pos.set_ylabel('Position [km]')
  ax_pos.legend(loc='upper right')
  ax_pos.grid(True, alpha=0.3)

  ax_range.plot(time_d, range_v, color='k')
  ax_range.set_ylabel('Range [km]')
  ax_range.set_xlabel('Time [days]')
  ax_range.grid(True, alpha=0.3)

  if epoch_dt is not None and time_d[-1] > 0:
    ticks = np.linspace(0.0, time_d[-1], 5)
    ax_utc = ax_range.secondary_xaxis('bottom')
    ax_utc.spines['bottom'].set_position(('outward', 36))
    ax_utc.set_xticks(ticks)
    ax_utc.set_xticklabels([
      (epoch_dt + timedelta(days=float(t))).strftime('%Y-%m-%d\n%H:%M')
      for t in ticks
    ])

  fig.tight_layout()
  return fig


def save_state_plot(
  filepath : Union[str, Path],
  epochs   : np.ndarray,
  states   : np.ndarray,
  target   : str,
  observer : str,
  frame    : str = "J2000",
  epoch_dt : Optional[datetime] = None,
) -> Path:
  """
  Plot the state history and save it to an image file.
  """
  filepath = Path(filepath).expanduser()
  filepath.parent.mkdir(parents=True, exist_ok=True)

  fig = plot_state_history(epochs, states, target, observer, frame, epoch_dt)
  fig.savefig(filepath, dpi=150, bbox_inches='tight')
  plt.close(fig)
  return filepath
