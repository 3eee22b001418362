import sys
import argparse

from typing import Optional

from bsp_ephemeris.utility.time_helper import parse_step, parse_time


def parse_command_line_arguments(
  argv : Optional[list[str]] = None,
) -> argparse.Namespace:
  """
  Parse command-line arguments for the BSP ephemeris reader.

  Input:
  ------
    argv : list[str] | None
      Arguments to parse. Reads from sys.argv when None.

  Output:
  -------
    args : argparse.Namespace
      Parsed command-line arguments.
  """
  parser = argparse.ArgumentParser(
    description     = 'Read SPICE SPK (BSP) ephemeris kernels and tabulate body states',
    formatter_class = argparse.RawDescriptionHelpFormatter,
  )

  # If no arguments provided, print help and exit
  argv = sys.argv[1:] if argv is None else list(argv)
  if len(argv) == 0:
    parser.print_help(sys.stderr)
    sys.exit(1)

  # Kernel arguments
  parser.add_argument(
    '--kernels',
    dest    = 'kernels',
    type    = str,
    nargs   = '+',
    default = None,
    metavar = 'FILE',
    help    = 'SPK (BSP) kernel files to load. Later files take precedence.',
  )
  parser.add_argument(
    '--kernels-folder',
    dest    = 'kernels_folder',
    type    = str,
    default = None,
    metavar = 'DIR',
    help    = 'Folder whose .bsp files are loaded, in name order.',
  )
  parser.add_argument(
    '--text-kernels',
    dest    = 'text_kernels',
    type    = str,
    nargs   = '+',
    default = None,
    metavar = 'FILE',
    help    = 'Text kernels holding body name/code and frame definitions.',
  )
  parser.add_argument(
    '--summary',
    dest    = 'summary',
    action  = 'store_true',
    default = False,
    help    = 'Print the comments, segments and coverage of each kernel.',
  )

  # State arguments
  parser.add_argument(
    '--target',
    dest    = 'target',
    type    = str,
    default = None,
    help    = 'Target body name or NAIF code (e.g. EARTH, 399).',
  )
  parser.add_argument(
    '--observer',
    dest    = 'observer',
    type    = str,
    default = None,
    help    = 'Observing body name or NAIF code (default: SOLAR SYSTEM BARYCENTER).',
  )
  parser.add_argument(
    '--frame',
    dest    = 'frame',
    type    = str,
    default = None,
    help    = 'Inertial reference frame of the states (default: J2000).',
  )
  parser.add_argument(
    '--timespan',
    dest    = 'timespan',
    type    = parse_time,
    nargs   = 2,
    metavar = ('TIME_START', 'TIME_END'),
    default = None,
    help    = "Start and end UTC time in ISO format (e.g., '2025-10-01T00:00:00 2025-10-02T00:00:00').",
  )
  parser.add_argument(
    '--step',
    dest    = 'step',
    type    = parse_step,
    default = None,
    help    = "Time step between states, in seconds or with a unit suffix (e.g. 3600, 30m, 6h, 1d). Default: 1d.",
  )

  # Output arguments
  parser.add_argument(
    '--output-file',
    dest    = 'output_file',
    type    = str,
    default = None,
    metavar = 'FILE',
    help    = 'Write the states to a CSV file.',
  )
  parser.add_argument(
    '--plot',
    dest    = 'plot_file',
    type    = str,
    default = None,
    metavar = 'FILE',
    help    = 'Save a figure of the position components and range (e.g. states.png).',
  )
  parser.add_argument(
    '--log-file',
    dest    = 'log_file',
    type    = str,
    default = None,
    metavar = 'FILE',
    help    = 'Copy the terminal output to a log file.',
  )
  parser.add_argument(
    '--config',
    dest    = 'config_file',
    type    = str,
    default = None,
    metavar = 'FILE',
    help    = 'YAML file providing defaults for any of the arguments above.',
  )

  return parser.parse_args(argv)
