"""
BSP Ephemeris Reader

Description:
  This script reads JPL/NAIF SPK (BSP) ephemeris kernels. It loads one or more
  kernel files, prints what they contain and tabulates the state of a target
  body relative to an observer over a timespan.

  The script performs the following steps:
  1. Loads the text kernels (body name/code and frame definitions), if any.
  2. Loads the SPK kernels. Files loaded later take precedence.
  3. Prints the comments, segments and coverage of each kernel (--summary).
  4. Computes the states of the target relative to the observer at each step
     of the timespan, with the one-way light time.
  5. Writes the states to a CSV file and saves a plot, if requested.

Usage:

  Argument                     Required   Description
  ---------------------------  --------   --------------------------------------------------
  --kernels                    Yes*       SPK kernel files (*or --kernels-folder)
  --kernels-folder             Yes*       Folder whose .bsp files are loaded
  --text-kernels               No         Text kernels with body/frame definitions
  --summary                    No         Print kernel comments, segments and coverage
  --target                     No         Target body name or NAIF code
  --observer                   No         Observer body (default: SOLAR SYSTEM BARYCENTER)
  --frame                      No         Inertial frame (default: J2000)
  --timespan                   No         Start and end time (ISO format, UTC), with --target
  --step                       No         Time step, e.g. 3600, 30m, 6h, 1d (default: 1d)
  --output-file                No         CSV file of the states
  --plot                       No         Image file of the position and range
  --log-file                   No         Copy of the terminal output
  --config                     No         YAML file of default settings

  Example Commands:
    python -m bsp_ephemeris.main \
      --kernels bsp_ephemeris/data/spice_kernels/de440s.bsp \
      --summary

    python -m bsp_ephemeris.main \
      --kernels-folder bsp_ephemeris/data/spice_kernels \
      --target MOON \
      --observer EARTH \
      --timespan 2025-10-01T00:00:00 2025-10-31T00:00:00 \
      --step 6h \
      --output-file output/moon.csv \
      --plot output/moon.png
"""
import sys
import numpy as np

from pathlib import Path
from typing  import Optional

from bsp_ephemeris.input.cli            import parse_command_line_arguments
from bsp_ephemeris.input.configuration  import build_config, print_configuration
from bsp_ephemeris.model.time_converter import et_to_utc, utc_to_et
from bsp_ephemeris.plot.ephemeris       import save_state_plot
from bsp_ephemeris.spice.bodies         import BodyTable, get_body_table
from bsp_ephemeris.spice.errors         import SpiceError
from bsp_ephemeris.spice.frames         import FrameTable, get_frame_table
from bsp_ephemeris.spice.kernel_pool    import KernelPool
from bsp_ephemeris.spice.spk_reader     import SpkReader
from bsp_ephemeris.spice.text_kernel    import TextKernelPool
from bsp_ephemeris.utility.logger       import start_logging, stop_logging
from bsp_ephemeris.utility.printer      import print_kernel_summary, print_state_table
from bsp_ephemeris.utility.time_helper  import build_epoch_grid

MAX_PRINTED_STATES = 25


def load_tables(
  text_kernel_filepaths : list[Path],
) -> tuple[BodyTable, FrameTable]:
  """
  Body and frame tables, extended with the definitions of the text kernels.

  Input:
  ------
    text_kernel_filepaths : list[Path]
      Text kernels to read. The shared built-in tables are returned when empty.

  Output:
  -------
    bodies : BodyTable
      Body name/code table.
    frames : FrameTable
      Frame name/ID table.
  """
  if not text_kernel_filepaths:
    return get_body_table(), get_frame_table()

  print("\nLoading Text Kernels")
  text_pool = TextKernelPool()
  for filepath in text_kernel_filepaths:
    text_pool.load(filepath)
    print(f"  {filepath}")

  bodies   = BodyTable()
  frames   = FrameTable()
  n_bodies = bodies.load_from_pool(text_pool)
  n_frames = frames.load_from_pool(text_pool, bodies)
  print(f"  Variables         : {len(text_pool)}")
  print(f"  Body Definitions  : {n_bodies}")
  print(f"  Frame Definitions : {n_frames}")
  return bodies, frames


def write_states_csv(
  filepath    : Path,
  epochs      : np.ndarray,
  states      : np.ndarray,
  light_times : np.ndarray,
) -> Path:
  """
  Write one CSV row per epoch: ET, UTC, position [km], velocity [km/s] and light time [s].
  """
  filepath.parent.mkdir(parents=True, exist_ok=True)
  with open(filepath, 'w') as f:
    f.write("et_s,utc,x_km,y_km,z_km,vx_km_per_s,vy_km_per_s,vz_km_per_s,light_time_s\n")
    for et, state, light_time in zip(epochs, states, light_times):
      values = ','.join(f"{value:.15e}" for value in state)
      f.write(f"{et:.6f},{et_to_utc(et).isoformat()},{values},{light_time:.15e}\n")
  return filepath


def compute_states(
  reader   : SpkReader,
  target   : str,
  observer : str,
  frame    : str,
  epochs   : np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
  """
  States and light times of a target relative to an observer at several epochs.

  Output:
  -------
    states : np.ndarray (n, 6)
      Position [km] and velocity [km/s].
    light_times : np.ndarray (n,)
      One-way light time [s].
  """
  states      = np.empty((len(epochs), 6))
  light_times = np.empty(len(epochs))
  for i, et in enumerate(epochs):
    states[i], light_times[i] = reader.get_state(target, et, frame, observer)
  return states, light_times


def main(
  kernels        : Optional[list]  = None,
  kernels_folder : Optional[str]   = None,
  text_kernels   : Optional[list]  = None,
  summary        : bool            = False,
  target         : Optional[str]   = None,
  observer       : Optional[str]   = None,
  frame          : Optional[str]   = None,
  timespan       : Optional[list]  = None,
  step           : Optional[float] = None,
  output_file    : Optional[str]   = None,
  plot_file      : Optional[str]   = None,
  log_file       : Optional[str]   = None,
  config_file    : Optional[str]   = None,
) -> dict:
  """
  Main function to read the kernels and tabulate the requested states.

  This function orchestrates the run. It builds the configuration, loads the
  text and SPK kernels, prints their summaries, computes the states of the
  target over the timespan, and writes the requested output files.

  Input:
  ------
    See build_config; every argument left to None takes its value from the
    config file, or its default.

  Output:
  -------
    result : dict
      'success', and for a state table 'epochs' [s past J2000], 'states'
      (n, 6) [km, km/s] and 'light_times' [s].
  """
  # Process inputs and setup
  config = build_config(
    kernels        = kernels,
    kernels_folder = kernels_folder,
    text_kernels   = text_kernels,
    summary        = summary,
    target         = target,
    observer       = observer,
    frame          = frame,
    timespan       = timespan,
    step           = step,
    output_file    = output_file,
    plot_file      = plot_file,
    log_file       = log_file,
    config_file    = config_file,
  )

  # Start logging to file
  logger = start_logging(config.log_filepath) if config.log_filepath is not None else None

  pool = KernelPool()
  try:
    print_configuration(config)

    bodies, frames = load_tables(config.text_kernel_filepaths)

    # Load SPK kernels
    print("\nLoading SPK Kernels")
    for filepath in config.kernel_filepaths:
      kernel = pool.load(filepath)
      print(f"  [{kernel.handle}] {kernel.path} : {len(kernel.segments)} segment(s)")

    if config.summary:
      for kernel in reversed(pool.handles):
        print_kernel_summary(kernel, bodies, frames)

    result = {'success': True}
    if config.target is not None:
      epochs = build_epoch_grid(
        utc_to_et(config.time_o_dt),
        utc_to_et(config.time_f_dt),
        config.step_s,
      )
      reader = SpkReader(pool, bodies, frames)
      states, light_times = compute_states(reader, config.target, config.observer, config.frame, epochs)

      print_state_table(
        epochs, states, light_times,
        target   = config.target,
        observer = config.observer,
        frame    = config.frame,
        max_rows = MAX_PRINTED_STATES,
      )

      if config.output_filepath is not None:
        write_states_csv(config.output_filepath, epochs, states, light_times)
        print(f"\n  States written to {config.output_filepath}")
      if config.plot_filepath is not None:
        save_state_plot(
          config.plot_filepath, epochs, states,
          target   = config.target,
          observer = config.observer,
          frame    = config.frame,
          epoch_dt = config.time_o_dt,
        )
        print(f"  Plot saved to {config.plot_filepath}")

      result.update(epochs=epochs, states=states, light_times=light_times)
  finally:
    # Unload all kernels and stop logging
    pool.clear()
    stop_logging(logger)

  return result


def run(
  argv : Optional[list[str]] = None,
) -> int:
  """
  Command-line entry point. Returns the process exit status.
  """
  args = parse_command_line_arguments(argv)
  try:
    main(
      kernels        = args.kernels,
      kernels_folder = args.kernels_folder,
      text_kernels   = args.text_kernels,
      summary        = args.summary,
      target         = args.target,
      observer       = args.observer,
      frame          = args.frame,
      timespan       = args.timespan,
      step           = args.step,
      output_file    = args.output_file,
      plot_file      = args.plot_file,
      log_file       = args.log_file,
      config_file    = args.config_file,
    )
  except (SpiceError, ValueError, OSError) as error:
    print(f"\n[ERROR] {error}", file=sys.stderr)
    return 1
  return 0


if __name__ == "__main__":
  sys.exit(run())
