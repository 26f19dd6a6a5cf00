"""NASA JPL ephemeris helpers."""

import logging
import math
import shutil
from datetime import datetime, timezone
from pathlib import Path
from urllib.request import urlopen

import numpy as np
from jplephem.spk import SPK

from . import constants as C
from .bodies import Body, BodyRegistry
from .presets import NAIF_IDS, NAIF_SUN, PRESETS

logger = logging.getLogger(__name__)

OBLIQUITY_J2000 = math.radians(23.439291)


def load_ephemeris(path: str) -> SPK:
    """Load a JPL SPK ephemeris file."""
    return SPK.open(path)


def equatorial_to_ecliptic(vec) -> np.ndarray:
    """Rotate an ICRF (equatorial) vector into the J2000 ecliptic frame."""
    x, y, z = vec
    c, s = math.cos(OBLIQUITY_J2000), math.sin(OBLIQUITY_J2000)
    return np.array([x, c * y + s * z, -s * y + c * z])


def body_state(ephem: SPK, target: int, epoch: datetime) -> tuple[np.ndarray, np.ndarray]:
    """Return the Sun-relative ecliptic position [m] and velocity [m/s] of ``target``."""
    if epoch.tzinfo is None:
        epoch = epoch.replace(tzinfo=timezone.utc)
    jd = epoch.timestamp() / 86400.0 + 2440587.5
    pos, vel = ephem[0, target].compute_and_differentiate(jd)
    sun_pos, sun_vel = ephem[0, NAIF_SUN].compute_and_differentiate(jd)
    # jplephem returns km and km/day
    pos_m = equatorial_to_ecliptic((pos - sun_pos) * 1000.0)
    vel_m_s = equatorial_to_ecliptic((vel - sun_vel) * 1000.0 / C.DAY_TO_S)
    return pos_m, vel_m_s


def create_registry(ephem: SPK, epoch: datetime, preset_name: str = "Inner Planets") -> BodyRegistry:
    """Build a registry for ``preset_name`` with initial states read from ``ephem``."""
    if preset_name not in PRESETS:
        raise KeyError(f"Preset '{preset_name}' not found")
    bodies = []
    for cfg in PRESETS[preset_name]:
        pos, vel = body_state(ephem, NAIF_IDS[cfg["id"]], epoch)
        bodies.append(Body.from_preset({**cfg, "state": [*pos, *vel]}))
    logger.info("Loaded %d bodies from ephemeris for %s", len(bodies), epoch.date())
    return BodyRegistry(bodies)


def download_ephemeris(url: str, dest: str | Path) -> Path:
    """Download a JPL ephemeris BSP file.

    Parameters
    ----------
    url:
        HTTP(S) location of the BSP file.
    dest:
        Destination directory or full file path where the kernel will be
        written. If ``dest`` is a directory, the filename is taken from
        ``url``.

    Returns
    -------
    Path
        Path of the downloaded file.
    """
    dest_path = Path(dest)
    if dest_path.is_dir():
        dest_path = dest_path / Path(url).name

    logger.info("Downloading %s to %s", url, dest_path)
    with urlopen(url) as resp, open(dest_path, "wb") as f:
        shutil.copyfileobj(resp, f)

    return dest_path.resolve()


def main(argv: list[str] | None = None) -> None:
    """Command line entry point for downloading ephemerides."""
    import argparse

    parser = argparse.ArgumentParser(description="Download a JPL ephemeris BSP file")
    parser.add_argument("url", help="URL of the BSP file")
    parser.add_argument(
        "dest",
        nargs="?",
        default=".",
        help="Destination directory or file path",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    path = download_ephemeris(args.url, args.dest)
    print(path)


if __name__ == "__main__":  # pragma: no cover - manual tool
    main()
