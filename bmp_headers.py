"""Fixed-layout BMP headers.

Every structure is read and written field by field at its literal byte
offset, little-endian, with no padding between fields:

    BITMAPFILEHEADER   14 bytes
    BITMAPINFOHEADER   40 bytes
    color mask header  84 bytes (32 bpp images only, right after the info header)
"""
from bmp_errors import UnrecognizedFormatError, UnsupportedFormatError

BMP_MAGIC = 0x4D42  # 'BM' read as a little-endian u16

FILE_HEADER_SIZE = 14
INFO_HEADER_SIZE = 40
COLOR_HEADER_SIZE = 4 * 4 + 4 + 16 * 4

# biCompression
BI_RGB = 0
BI_BITFIELDS = 3

# biBitCount
BPP_BLACK_WHITE = 1
BPP_16_COLORS = 4
BPP_256_COLORS = 8
BPP_HIGH_COLORS = 24
BPP_HIGH_COLORS_TRANSPARENT = 32
BIT_COUNTS = (BPP_BLACK_WHITE, BPP_16_COLORS, BPP_256_COLORS,
              BPP_HIGH_COLORS, BPP_HIGH_COLORS_TRANSPARENT)

# Only BGRA byte order in the sRGB color space is accepted for 32 bpp
RED_MASK = 0x00FF0000
GREEN_MASK = 0x0000FF00
BLUE_MASK = 0x000000FF
ALPHA_MASK = 0xFF000000
LCS_SRGB = 0x73524742  # 'sRGB'


def aligned_stride(row_stride, align=4):
    """Smallest multiple of `align` that is >= row_stride."""
    return (row_stride + align - 1) // align * align


def row_padding(row_stride):
    """
    Number of zero bytes stored after each row on disk.
    24 bpp rows need 0-3 bytes; 32 bpp rows are always aligned already.
    """
    return aligned_stride(row_stride) - row_stride


def _check_size(raw, size, name):
    if len(raw) < size:
        raise UnrecognizedFormatError(
            f"{name} needs {size} bytes, got {len(raw)}")


class BitmapFileHeader:
    def __init__(self, bfType=BMP_MAGIC, bfSize=0, bfReserved1=0,
                 bfReserved2=0, bfOffBits=0):
        self.bfType = bfType            # must be 'BM'
        self.bfSize = bfSize            # whole file, in bytes
        self.bfReserved1 = bfReserved1
        self.bfReserved2 = bfReserved2
        self.bfOffBits = bfOffBits      # file start -> pixel data

    @classmethod
    def from_bytes(cls, raw):
        _check_size(raw, FILE_HEADER_SIZE, "file header")
        return cls(
            bfType=int.from_bytes(raw[0:2], 'little'),
            bfSize=int.from_bytes(raw[2:6], 'little'),
            bfReserved1=int.from_bytes(raw[6:8], 'little'),
            bfReserved2=int.from_bytes(raw[8:10], 'little'),
            bfOffBits=int.from_bytes(raw[10:14], 'little'),
        )

    def to_bytes(self):
        raw = bytearray(FILE_HEADER_SIZE)
        raw[0:2] = self.bfType.to_bytes(2, 'little')
        raw[2:6] = self.bfSize.to_bytes(4, 'little')
        raw[6:8] = self.bfReserved1.to_bytes(2, 'little')
        raw[8:10] = self.bfReserved2.to_bytes(2, 'little')
        raw[10:14] = self.bfOffBits.to_bytes(4, 'little')
        return bytes(raw)

    def __eq__(self, other):
        if not isinstance(other, BitmapFileHeader):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __repr__(self):
        return (f"BitmapFileHeader(bfType={self.bfType:#06x}, bfSize={self.bfSize}, "
                f"bfReserved1={self.bfReserved1}, bfReserved2={self.bfReserved2}, "
                f"bfOffBits={self.bfOffBits})")


class BitmapInfoHeader:
    def __init__(self, biSize=INFO_HEADER_SIZE, biWidth=0, biHeight=0, biPlanes=1,
                 biBitCount=BPP_HIGH_COLORS, biCompression=BI_RGB, biSizeImage=0,
                 biXPelsPerMeter=0, biYPelsPerMeter=0, biClrUsed=0,
                 biClrImportant=0):
        self.biSize = biSize
        # Width & height are signed; a negative height means top-down rows
        self.biWidth = biWidth
        self.biHeight = biHeight
        self.biPlanes = biPlanes
        self.biBitCount = biBitCount
        self.biCompression = biCompression
        self.biSizeImage = biSizeImage
        # Device resolution and palette counts are carried, never interpreted
        self.biXPelsPerMeter = biXPelsPerMeter
        self.biYPelsPerMeter = biYPelsPerMeter
        self.biClrUsed = biClrUsed
        self.biClrImportant = biClrImportant

    @classmethod
    def from_bytes(cls, raw):
        _check_size(raw, INFO_HEADER_SIZE, "info header")
        return cls(
            biSize=int.from_bytes(raw[0:4], 'little'),
            biWidth=int.from_bytes(raw[4:8], 'little', signed=True),
            biHeight=int.from_bytes(raw[8:12], 'little', signed=True),
            biPlanes=int.from_bytes(raw[12:14], 'little'),
            biBitCount=int.from_bytes(raw[14:16], 'little'),
            biCompression=int.from_bytes(raw[16:20], 'little'),
            biSizeImage=int.from_bytes(raw[20:24], 'little'),
            biXPelsPerMeter=int.from_bytes(raw[24:28], 'little', signed=True),
            biYPelsPerMeter=int.from_bytes(raw[28:32], 'little', signed=True),
            biClrUsed=int.from_bytes(raw[32:36], 'little'),
            biClrImportant=int.from_bytes(raw[36:40], 'little'),
        )

    def to_bytes(self):
        raw = bytearray(INFO_HEADER_SIZE)
        raw[0:4] = self.biSize.to_bytes(4, 'little')
        raw[4:8] = self.biWidth.to_bytes(4, 'little', signed=True)
        raw[8:12] = self.biHeight.to_bytes(4, 'little', signed=True)
        raw[12:14] = self.biPlanes.to_bytes(2, 'little')
        raw[14:16] = self.biBitCount.to_bytes(2, 'little')
        raw[16:20] = self.biCompression.to_bytes(4, 'little')
        raw[20:24] = self.biSizeImage.to_bytes(4, 'little')
        raw[24:28] = self.biXPelsPerMeter.to_bytes(4, 'little', signed=True)
        raw[28:32] = self.biYPelsPerMeter.to_bytes(4, 'little', signed=True)
        raw[32:36] = self.biClrUsed.to_bytes(4, 'little')
        raw[36:40] = self.biClrImportant.to_bytes(4, 'little')
        return bytes(raw)

    @property
    def channels(self):
        # Bytes per pixel for the direct color modes (3 = BGR, 4 = BGRA)
        return self.biBitCount // 8

    def __eq__(self, other):
        if not isinstance(other, BitmapInfoHeader):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __repr__(self):
        return (f"BitmapInfoHeader(biSize={self.biSize}, biWidth={self.biWidth}, "
                f"biHeight={self.biHeight}, biPlanes={self.biPlanes}, "
                f"biBitCount={self.biBitCount}, biCompression={self.biCompression}, "
                f"biSizeImage={self.biSizeImage})")


class BitmapColorHeader:
    def __init__(self, red_mask=RED_MASK, green_mask=GREEN_MASK,
                 blue_mask=BLUE_MASK, alpha_mask=ALPHA_MASK,
                 color_space_type=LCS_SRGB, unused=None):
        self.red_mask = red_mask
        self.green_mask = green_mask
        self.blue_mask = blue_mask
        self.alpha_mask = alpha_mask
        self.color_space_type = color_space_type
        # Unused data for the sRGB color space (endpoints, gamma, profile)
        self.unused = list(unused) if unused is not None else [0] * 16

    @classmethod
    def from_bytes(cls, raw):
        _check_size(raw, COLOR_HEADER_SIZE, "color header")
        words = [int.from_bytes(raw[i:i + 4], 'little')
                 for i in range(0, COLOR_HEADER_SIZE, 4)]
        return cls(*words[:5], unused=words[5:])

    def to_bytes(self):
        words = [self.red_mask, self.green_mask, self.blue_mask,
                 self.alpha_mask, self.color_space_type] + self.unused
        return b"".join(w.to_bytes(4, 'little') for w in words)

    def check(self):
        """
        Accept only BGRA pixel data in the sRGB color space.
        Other mask layouts are rejected, never remapped.
        """
        expected = BitmapColorHeader()
        if (self.red_mask != expected.red_mask or
                self.green_mask != expected.green_mask or
                self.blue_mask != expected.blue_mask or
                self.alpha_mask != expected.alpha_mask):
            raise UnsupportedFormatError(
                "Unexpected color mask format, expected BGRA pixel data "
                f"(masks r={self.red_mask:#010x} g={self.green_mask:#010x} "
                f"b={self.blue_mask:#010x} a={self.alpha_mask:#010x})")
        if self.color_space_type != expected.color_space_type:
            raise UnsupportedFormatError(
                f"Unexpected color space type {self.color_space_type:#010x}, expected sRGB")

    def __eq__(self, other):
        if not isinstance(other, BitmapColorHeader):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __repr__(self):
        return (f"BitmapColorHeader(red_mask={self.red_mask:#010x}, "
                f"green_mask={self.green_mask:#010x}, blue_mask={self.blue_mask:#010x}, "
                f"alpha_mask={self.alpha_mask:#010x}, "
                f"color_space_type={self.color_space_type:#010x})")
