import struct

import pytest

SRGB = 0x73524742
BGRA_MASKS = (0x00FF0000, 0x0000FF00, 0x000000FF, 0xFF000000)


def sample_rows(width, height, channels):
    """Deterministic, non-trivial pixel rows in file order (bottom row first)."""
    stride = width * channels
    return [bytes((x * 7 + y * 13 + 1) % 256 for x in range(stride))
            for y in range(height)]


def build_bmp(width, height, bpp=24, rows=None, magic=b'BM', bi_size=None,
              compression=None, masks=BGRA_MASKS, color_space=SRGB,
              offset=None, file_size=None):
    """Assemble a BMP byte string with struct, independent of the code under test."""
    channels = bpp // 8
    stride = width * channels
    padded = (stride + 3) & ~3
    if rows is None:
        rows = sample_rows(width, abs(height), channels)

    if bpp == 32:
        color = struct.pack('<5I', *masks, color_space) + bytes(64)
        default_size, default_compression = 124, 3
    else:
        color = b''
        default_size, default_compression = 40, 0
    if bi_size is None:
        bi_size = default_size
    if compression is None:
        compression = default_compression

    headers_end = 14 + 40 + len(color)
    if offset is None:
        offset = headers_end
    gap = bytes(offset - headers_end)

    pixels = b''.join(row + bytes(padded - stride) for row in rows)
    if file_size is None:
        file_size = offset + len(pixels)

    file_header = struct.pack('<2sIHHI', magic, file_size, 0, 0, offset)
    info_header = struct.pack('<IiiHHIIiiII', bi_size, width, height, 1, bpp,
                              compression, len(pixels), 2835, 2835, 0, 0)
    return file_header + info_header + color + gap + pixels


@pytest.fixture
def bmp_factory():
    return build_bmp


@pytest.fixture
def rows_factory():
    return sample_rows
