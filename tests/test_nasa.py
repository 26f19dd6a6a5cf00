import http.server
import math
import os
import socketserver
import threading
from datetime import datetime

import numpy as np

from orrery.nasa import (
    OBLIQUITY_J2000,
    body_state,
    create_registry,
    download_ephemeris,
    equatorial_to_ecliptic,
)


class FakeSegment:
    def __init__(self, pos, vel):
        self.pos = np.array(pos, dtype=float)
        self.vel = np.array(vel, dtype=float)

    def compute_and_differentiate(self, jd):
        return self.pos, self.vel


class FakeEphemeris:
    """Stands in for a jplephem SPK with fixed km / km-per-day states."""

    def __init__(self, segments):
        self.segments = segments

    def __getitem__(self, key):
        return self.segments[key[1]]


def test_ecliptic_pole_maps_to_z():
    pole = [0.0, -math.sin(OBLIQUITY_J2000), math.cos(OBLIQUITY_J2000)]
    assert np.allclose(equatorial_to_ecliptic(pole), [0.0, 0.0, 1.0])


def test_body_state_converts_units_and_frame():
    ephem = FakeEphemeris(
        {
            10: FakeSegment([1.0e5, 0.0, 0.0], [0.0, 0.0, 0.0]),
            3: FakeSegment([1.5e8 + 1.0e5, 0.0, 0.0], [0.0, 86400.0, 0.0]),
        }
    )
    pos, vel = body_state(ephem, 3, datetime(2024, 1, 1))
    assert np.allclose(pos, [1.5e11, 0.0, 0.0])
    c, s = math.cos(OBLIQUITY_J2000), math.sin(OBLIQUITY_J2000)
    assert np.allclose(vel, [0.0, 1000.0 * c, -1000.0 * s])


def test_create_registry_uses_ephemeris_states():
    segments = {10: FakeSegment([0, 0, 0], [0, 0, 0])}
    for naif in (1, 2, 3, 4):
        segments[naif] = FakeSegment([naif * 5.0e7, 0.0, 0.0], [0.0, 2.5e6, 0.0])
    reg = create_registry(FakeEphemeris(segments), datetime(2024, 1, 1))
    assert reg.ids() == ["mercury", "venus", "earth", "mars"]
    assert np.allclose(reg.get("earth").pos, [1.5e11, 0.0, 0.0])
    assert reg.get("earth").name == "Earth"


def test_download_ephemeris(tmp_path):
    data = b"abc123"
    source = tmp_path / "source.bsp"
    source.write_bytes(data)

    class Handler(http.server.SimpleHTTPRequestHandler):
        def log_message(self, format, *args):
            pass

    cwd = os.getcwd()
    os.chdir(tmp_path)
    httpd = socketserver.TCPServer(("localhost", 0), Handler)
    port = httpd.server_address[1]
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        url = f"http://localhost:{port}/source.bsp"
        dest = tmp_path / "out.bsp"
        path = download_ephemeris(url, dest)
        assert path.exists()
        assert path.read_bytes() == data
    finally:
        httpd.shutdown()
        httpd.server_close()
        thread.join()
        os.chdir(cwd)
