import io
import os
import struct

import numpy as np
import pytest
from PIL import Image, ImageCms

from cmyk2srgb.models.config import ConverterConfig

D50 = (0.9642, 1.0, 0.8249)


def _s15f16(value):
    return struct.pack(">i", int(round(value * 65536)))


def _lab_f(t):
    delta = 6.0 / 29.0
    if t > delta ** 3:
        return t ** (1.0 / 3.0)
    return t / (3 * delta ** 2) + 4.0 / 29.0


def _cmyk_to_lab(c, m, y, k, cast):
    # naive separation: ink removes light multiplicatively
    r = (1 - c) * (1 - k)
    g = (1 - m) * (1 - k)
    b = (1 - y) * (1 - k)
    lin = [((v + 0.055) / 1.055) ** 2.4 if v > 0.04045 else v / 12.92 for v in (r, g, b)]
    x = 0.4360747 * lin[0] + 0.3850649 * lin[1] + 0.1430804 * lin[2]
    yy = 0.2225045 * lin[0] + 0.7168786 * lin[1] + 0.0606169 * lin[2]
    z = 0.0139322 * lin[0] + 0.0971045 * lin[1] + 0.7141733 * lin[2]
    fx, fy, fz = _lab_f(x / D50[0]), _lab_f(yy / D50[1]), _lab_f(z / D50[2])
    lab_l = 116 * fy - 16
    lab_a = 500 * (fx - fy) + cast
    lab_b = 200 * (fy - fz)
    return lab_l, lab_a, lab_b


def _clamp16(value):
    return max(0, min(65535, int(round(value))))


def _lut16(cast, grid=3):
    steps = [i / (grid - 1) for i in range(grid)]
    clut = []
    # first input channel varies slowest
    for c in steps:
        for m in steps:
            for y in steps:
                for k in steps:
                    lab_l, lab_a, lab_b = _cmyk_to_lab(c, m, y, k, cast)
                    # ICC v2 16-bit Lab encoding
                    clut += [_clamp16(lab_l * 652.8), _clamp16((lab_a + 128) * 256), _clamp16((lab_b + 128) * 256)]
    identity = [1, 0, 0, 0, 1, 0, 0, 0, 1]
    data = b"mft2" + b"\0" * 4 + struct.pack(">BBBB", 4, 3, grid, 0)
    data += b"".join(_s15f16(v) for v in identity)
    data += struct.pack(">HH", 2, 2)
    data += struct.pack(">8H", *([0, 65535] * 4))
    data += struct.pack(f">{len(clut)}H", *clut)
    data += struct.pack(">6H", *([0, 65535] * 3))
    return data


def _desc(text):
    ascii_text = text.encode("ascii") + b"\0"
    return (b"desc" + b"\0" * 4 + struct.pack(">I", len(ascii_text)) + ascii_text
            + struct.pack(">IIHB", 0, 0, 0, 0) + b"\0" * 67)


def build_cmyk_profile(description="Test CMYK", cast=0.0, with_relative=False):
    """Return bytes of a minimal ICC v2 CMYK output profile with Lab PCS.

    Only A2B0 is written unless `with_relative` is set, in which case the same
    table is stored as A2B1 too, so relative colorimetric counts as supported.
    """
    lut = _lut16(cast)
    tags = [
        (b"desc", _desc(description)),
        (b"cprt", b"text" + b"\0" * 4 + b"No copyright, test data\0"),
        (b"wtpt", b"XYZ " + b"\0" * 4 + b"".join(_s15f16(v) for v in D50)),
        (b"A2B0", lut),
    ]
    if with_relative:
        tags.append((b"A2B1", lut))

    offset = 128 + 4 + 12 * len(tags)
    table = struct.pack(">I", len(tags))
    body = b""
    for sig, data in tags:
        table += sig + struct.pack(">II", offset + len(body), len(data))
        body += data + b"\0" * (-len(data) % 4)

    header = bytearray(128)
    header[8:12] = struct.pack(">I", 0x02100000)
    header[12:16] = b"prtr"
    header[16:20] = b"CMYK"
    header[20:24] = b"Lab "
    header[24:36] = struct.pack(">6H", 2024, 1, 1, 0, 0, 0)
    header[36:40] = b"acsp"
    header[64:68] = struct.pack(">I", 0)
    header[68:80] = b"".join(_s15f16(v) for v in D50)

    profile = bytes(header) + table + body
    return struct.pack(">I", len(profile)) + profile[4:]


def cmyk_pixels(size=(32, 32)):
    w, h = size
    xs = np.linspace(0, 255, w, dtype=np.float64)
    ys = np.linspace(0, 255, h, dtype=np.float64)
    gx, gy = np.meshgrid(xs, ys)
    arr = np.stack([gx, gy, 255 - gx, (gx + gy) / 4], axis=-1)
    return Image.frombytes("CMYK", size, arr.astype(np.uint8).tobytes())


def expected_srgb(path, profile_bytes, intent=ImageCms.Intent.PERCEPTUAL):
    """Convert `path` straight through ImageCms for comparison with converter output."""
    with Image.open(path) as im:
        im.load()
        source = ImageCms.ImageCmsProfile(io.BytesIO(profile_bytes))
        target = ImageCms.createProfile("sRGB")
        return ImageCms.profileToProfile(im, source, target, renderingIntent=intent, outputMode="RGB")


def mean_abs_diff(a, b):
    return float(np.abs(np.asarray(a, dtype=np.int16) - np.asarray(b, dtype=np.int16)).mean())


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("CMYK2SRGB_"):
            monkeypatch.delenv(name)


@pytest.fixture
def cmyk_profile():
    return build_cmyk_profile("Embedded CMYK", cast=12.0)


@pytest.fixture
def backstop_profile_bytes():
    return build_cmyk_profile("Backstop CMYK")


@pytest.fixture
def backstop_path(tmp_path, backstop_profile_bytes):
    path = tmp_path / "profiles" / "backstop.icc"
    path.parent.mkdir()
    path.write_bytes(backstop_profile_bytes)
    return path


@pytest.fixture
def config(backstop_path):
    return ConverterConfig(backstop_profile=backstop_path)


@pytest.fixture
def make_cmyk(tmp_path):
    """Factory writing a CMYK test image into `tmp_path/input`."""
    in_dir = tmp_path / "input"
    in_dir.mkdir()

    def _make(name="image.tif", icc_profile=None, fmt=None):
        path = in_dir / name
        kwargs = {}
        if icc_profile is not None:
            kwargs["icc_profile"] = icc_profile
        cmyk_pixels().save(path, format=fmt, **kwargs)
        return path

    return _make


@pytest.fixture
def out_dir(tmp_path):
    path = tmp_path / "out"
    path.mkdir()
    return path
