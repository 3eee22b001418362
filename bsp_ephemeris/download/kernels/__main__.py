"""
Download NAIF generic SPICE kernels.

Usage:
  python -m bsp_ephemeris.download.kernels
  python -m bsp_ephemeris.download.kernels de440.bsp naif0012.tls --output-dir ./kernels
"""

import argparse
import sys
import urllib.request
from pathlib import Path

# Base URL
BASE_URL = "https://naif.jpl.nasa.gov/pub/naif/generic_kernels"

# Known kernel files and their location under the base URL
KERNELS = {
    'de440s.bsp'   : 'spk/planets/de440s.bsp',
    'de440.bsp'    : 'spk/planets/de440.bsp',
    'de430.bsp'    : 'spk/planets/de430.bsp',
    'naif0012.tls' : 'lsk/naif0012.tls',
    'pck00010.tpc' : 'pck/pck00010.tpc',
    'pck00011.tpc' : 'pck/pck00011.tpc',
}
DEFAULT_KERNELS = ['de440s.bsp']

# Folders of the generic kernels tree, by file extension
FOLDERS_BY_EXTENSION = {
    '.tls' : 'lsk',
    '.tpc' : 'pck',
    '.tf'  : 'fk/planets',
}

# Output directory
PACKAGE_ROOT = Path(__file__).parent.parent.parent
OUTPUT_DIR   = PACKAGE_ROOT / 'data' / 'spice_kernels'


def build_kernel_url(filename):
    """
    URL of a generic kernel from its file name.

    Planetary ephemerides (de*.bsp) live under spk/planets, other SPK files
    under spk/satellites.
    """
    if filename in KERNELS:
        return f"{BASE_URL}/{KERNELS[filename]}"

    suffix = Path(filename).suffix.lower()
    if suffix == '.bsp':
        folder = 'spk/planets' if filename.lower().startswith('de') else 'spk/satellites'
    elif suffix in FOLDERS_BY_EXTENSION:
        folder = FOLDERS_BY_EXTENSION[suffix]
    else:
        raise ValueError(f"Cannot locate kernel '{filename}' in the NAIF generic kernels tree")
    return f"{BASE_URL}/{folder}/{filename}"


def download_with_progress(url, output_file):
    """Download file with progress bar"""

    def reporthook(block_num, block_size, total_size):
        downloaded = block_num * block_size
        percent = min(downloaded * 100 / total_size, 100) if total_size > 0 else 0
        mb_downloaded = downloaded / (1024 * 1024)
        mb_total = total_size / (1024 * 1024)
        print(f"\r  Progress: {percent:5.1f}% ({mb_downloaded:6.1f} / {mb_total:6.1f} MB)",
              end='', flush=True)

    try:
        urllib.request.urlretrieve(url, output_file, reporthook=reporthook)
        print()  # New line after progress
        return True
    except OSError as e:
        print(f"\n  Error: {e}")
        return False


def download_kernels(filenames, output_dir=OUTPUT_DIR):
    """
    Download kernels that are not already present in the output directory.

    Returns the list of file names that could not be downloaded.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    print("Downloading SPICE kernels...")
    print(f"Output directory: {output_dir}\n")

    failed = []
    for filename in filenames:
        output_file = output_dir / filename

        if output_file.exists():
            size_mb = output_file.stat().st_size / (1024 * 1024)
            print(f"✓ {filename} already exists ({size_mb:.1f} MB), skipping")
            continue

        url = build_kernel_url(filename)
        print(f"Downloading {filename}...")

        if download_with_progress(url, output_file):
            size_mb = output_file.stat().st_size / (1024 * 1024)
            print(f"✓ {filename} complete ({size_mb:.1f} MB)")
        else:
            print(f"✗ {filename} failed")
            failed.append(filename)
            if output_file.exists():
                output_file.unlink()  # Remove partial download

    print("\n" + "="*60)
    print("Download complete!" if not failed else f"Download finished with {len(failed)} failure(s)")
    print(f"Kernels location: {output_dir}")
    print("="*60)
    return failed


def main(argv=None):
    parser = argparse.ArgumentParser(description="Download NAIF generic SPICE kernels.")
    parser.add_argument(
        'kernels',
        nargs   = '*',
        default = DEFAULT_KERNELS,
        help    = f"Kernel file names (default: {' '.join(DEFAULT_KERNELS)}).",
    )
    parser.add_argument(
        '--output-dir',
        type    = Path,
        default = OUTPUT_DIR,
        help    = f"Destination folder (default: {OUTPUT_DIR}).",
    )
    args = parser.parse_args(argv)
    failed = download_kernels(args.kernels or DEFAULT_KERNELS, args.output_dir)
    return 1 if failed else 0


if __name__ == '__main__':
    sys.exit(main())
