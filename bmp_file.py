import io
import logging

from bmp_errors import (
    BMPIOError, InvalidDimensionsError, OutOfBoundsError,
    UnrecognizedFormatError, UnsupportedFormatError, UnsupportedOrientationError,
)
from bmp_headers import (
    BI_BITFIELDS, BI_RGB, BIT_COUNTS, BPP_HIGH_COLORS, BPP_HIGH_COLORS_TRANSPARENT,
    COLOR_HEADER_SIZE, FILE_HEADER_SIZE, INFO_HEADER_SIZE,
    BitmapColorHeader, BitmapFileHeader, BitmapInfoHeader, aligned_stride, row_padding,
)

logger = logging.getLogger(__name__)


def _read(stream, size, what):
    try:
        return stream.read(size)
    except OSError as e:
        raise BMPIOError(f"Failed to read {what}: {e}") from e


def _remaining(stream):
    try:
        position = stream.tell()
        end = stream.seek(0, io.SEEK_END)
        stream.seek(position)
    except OSError as e:
        raise BMPIOError(f"Failed to measure stream: {e}") from e
    return end - position


def _read_exact(stream, size, what):
    chunk = _read(stream, size, what)
    if len(chunk) != size:
        raise BMPIOError(
            f"Unexpected end of file while reading {what} "
            f"({len(chunk)} of {size} bytes)")
    return chunk


class BitmapFile:
    """
    A 24 bpp (BGR) or 32 bpp (BGRA) bottom-up bitmap held in memory.

    `data` stores the rows tightly packed in file order (first row is the
    bottom of the picture); the 4-byte row padding only exists on disk.
    Build one with `from_stream`, `create`, or the `load_bmp` / `create_bmp`
    helpers below.
    """

    def __init__(self, file_header, info_header, color_header=None, data=None):
        self.file_header = file_header
        self.info_header = info_header
        self.color_header = color_header
        if data is None:
            data = bytearray(info_header.biWidth * info_header.biHeight * info_header.channels)
        self.data = data
        self._check_data_length()

    # Geometry
    @property
    def width(self):
        return self.info_header.biWidth

    @property
    def height(self):
        return self.info_header.biHeight

    @property
    def bpp(self):
        return self.info_header.biBitCount

    @property
    def channels(self):
        return self.info_header.channels

    @property
    def has_alpha(self):
        return self.channels == 4

    @property
    def row_stride(self):
        # Row size in memory (no padding)
        return self.width * self.channels

    @property
    def padding(self):
        return row_padding(self.row_stride)

    @property
    def metadata(self):
        return {
            'file_size': self.file_header.bfSize,
            'data_offset': self.file_header.bfOffBits,
            'width': self.width,
            'height': self.height,
            'bpp': self.bpp,
            'compression': self.info_header.biCompression,
            'channels': self.channels,
        }

    def __repr__(self):
        return f"<BitmapFile {self.width}x{self.height} {self.bpp}bpp>"

    @classmethod
    def from_stream(cls, stream):
        """Decode a bottom-up 24 or 32 bpp BMP from a binary stream positioned at its start."""
        raw = _read(stream, FILE_HEADER_SIZE, "file header")
        # Signature (must start with 'BM')
        if raw[0:2] != b'BM':
            raise UnrecognizedFormatError("Unrecognized file format, missing 'BM' signature")
        if len(raw) != FILE_HEADER_SIZE:
            raise BMPIOError("Unexpected end of file while reading file header")
        file_header = BitmapFileHeader.from_bytes(raw)

        info_header = BitmapInfoHeader.from_bytes(
            _read_exact(stream, INFO_HEADER_SIZE, "info header"))
        logger.debug("Parsed %r %r", file_header, info_header)
        _check_pixel_format(info_header)

        color_header = None
        if info_header.biBitCount == BPP_HIGH_COLORS_TRANSPARENT:
            # The masks live in the extended part of the info header
            if info_header.biSize < INFO_HEADER_SIZE + COLOR_HEADER_SIZE:
                raise UnrecognizedFormatError(
                    f"Unrecognized file format, a 32 bpp image needs an info header of at least "
                    f"{INFO_HEADER_SIZE + COLOR_HEADER_SIZE} bytes, got {info_header.biSize}")
            color_header = BitmapColorHeader.from_bytes(
                _read_exact(stream, COLOR_HEADER_SIZE, "color header"))
            color_header.check()

        # Jump to the pixel data location
        try:
            stream.seek(file_header.bfOffBits)
        except OSError as e:
            raise BMPIOError(f"Failed to seek to pixel data at offset {file_header.bfOffBits}: {e}") from e

        if info_header.biHeight < 0:
            raise UnsupportedOrientationError(
                "Only BMP images with the origin in the bottom left corner are supported")

        # Refuse to allocate more than the stream can hold
        needed = info_header.biHeight * aligned_stride(info_header.biWidth * info_header.channels)
        available = _remaining(stream)
        if needed > available:
            raise BMPIOError(
                f"Unexpected end of file, pixel data needs {needed} bytes, {available} left")

        bitmap = cls(file_header, info_header, color_header)
        declared_size = file_header.bfSize
        bitmap._normalize_headers()
        if declared_size != file_header.bfSize:
            logger.warning("File header declares %d bytes, recomputed %d",
                           declared_size, file_header.bfSize)

        bitmap._read_pixels(stream)
        return bitmap

    def _read_pixels(self, stream):
        row_stride = self.row_stride
        padding = self.padding
        logger.debug("Reading %d rows, stride %d, padding %d", self.height, row_stride, padding)

        if padding == 0:
            # No padding on disk, the rows are contiguous
            self.data[:] = _read_exact(stream, len(self.data), "pixel data")
            return

        for y in range(self.height):
            start = y * row_stride
            self.data[start:start + row_stride] = _read_exact(stream, row_stride, f"row {y}")
            _read_exact(stream, padding, f"padding of row {y}")

    @classmethod
    def create(cls, width, height, has_alpha=True):
        """Blank (all zero) image, 32 bpp BGRA when has_alpha else 24 bpp BGR."""
        if width <= 0 or height <= 0:
            raise InvalidDimensionsError(
                f"The image width and height must be positive numbers, got {width}x{height}")

        if has_alpha:
            info_header = BitmapInfoHeader(biWidth=width, biHeight=height,
                                           biBitCount=BPP_HIGH_COLORS_TRANSPARENT,
                                           biCompression=BI_BITFIELDS)
            color_header = BitmapColorHeader()
        else:
            info_header = BitmapInfoHeader(biWidth=width, biHeight=height,
                                           biBitCount=BPP_HIGH_COLORS,
                                           biCompression=BI_RGB)
            color_header = None

        bitmap = cls(BitmapFileHeader(), info_header, color_header)
        bitmap._normalize_headers()
        return bitmap

    def _check_data_length(self):
        expected = self.width * self.height * self.channels
        if len(self.data) != expected:
            raise InvalidDimensionsError(
                f"Pixel buffer holds {len(self.data)} bytes, a {self.width}x{self.height} "
                f"{self.bpp} bpp image needs {expected}")

    def _normalize_headers(self):
        # Derived fields always follow the channel mode, whatever the input said
        info_header = self.info_header
        if info_header.biBitCount == BPP_HIGH_COLORS_TRANSPARENT:
            if self.color_header is None:
                self.color_header = BitmapColorHeader()
            info_header.biSize = INFO_HEADER_SIZE + COLOR_HEADER_SIZE
        else:
            info_header.biSize = INFO_HEADER_SIZE
        self.file_header.bfOffBits = FILE_HEADER_SIZE + info_header.biSize
        self.file_header.bfSize = (self.file_header.bfOffBits
                                   + self.height * aligned_stride(self.row_stride))

    def to_stream(self, stream):
        """Write headers, then every row followed by its on-disk padding."""
        self._check_data_length()
        self._normalize_headers()
        row_stride = self.row_stride
        padding = self.padding
        logger.debug("Writing %r, %d bytes", self, self.file_header.bfSize)

        try:
            stream.write(self.file_header.to_bytes())
            stream.write(self.info_header.to_bytes())
            if self.color_header is not None:
                stream.write(self.color_header.to_bytes())

            if padding == 0:
                stream.write(bytes(self.data))
            else:
                padding_row = bytes(padding)
                for y in range(self.height):
                    start = y * row_stride
                    stream.write(bytes(self.data[start:start + row_stride]))
                    stream.write(padding_row)
        except OSError as e:
            raise BMPIOError(f"Failed to write bitmap: {e}") from e

    def to_bytes(self):
        out = io.BytesIO()
        self.to_stream(out)
        return out.getvalue()

    def fill_region(self, x0, y0, w, h, b, g, r, a=255):
        """
        Paint the rectangle [x0, x0+w) x [y0, y0+h) with one color.
        `a` is ignored for 24 bpp images. A zero-sized region does nothing.
        """
        for name, value, limit in (("x0", x0, self.width), ("w", w, self.width),
                                   ("y0", y0, self.height), ("h", h, self.height)):
            if value < 0:
                raise OutOfBoundsError(f"Region {name} must not be negative", value, 0, limit + 1)
        if x0 + w > self.width:
            raise OutOfBoundsError("The region does not fit in the image width",
                                   x0 + w, 0, self.width + 1)
        if y0 + h > self.height:
            raise OutOfBoundsError("The region does not fit in the image height",
                                   y0 + h, 0, self.height + 1)

        channels = self.channels
        row = bytes((b, g, r, a)[:channels]) * w
        for y in range(y0, y0 + h):
            start = channels * (y * self.width + x0)
            self.data[start:start + len(row)] = row

    def get_pixel(self, x, y):
        """(b, g, r) or (b, g, r, a) at column x of stored row y (row 0 is the bottom)."""
        if x < 0 or x >= self.width:
            raise OutOfBoundsError(f"Pixel({x},{y}) x is out of range", x, 0, self.width)
        if y < 0 or y >= self.height:
            raise OutOfBoundsError(f"Pixel({x},{y}) y is out of range", y, 0, self.height)
        start = self.channels * (y * self.width + x)
        return tuple(self.data[start:start + self.channels])

    def pixel_rows(self):
        # Display order: top row first, pixels as (R, G, B)
        channels = self.channels
        rows = []
        for y in reversed(range(self.height)):
            start = y * self.row_stride
            row = self.data[start:start + self.row_stride]
            rows.append([(row[i + 2], row[i + 1], row[i])
                         for i in range(0, len(row), channels)])
        return rows


def _check_pixel_format(info_header):
    bpp = info_header.biBitCount
    if bpp not in BIT_COUNTS:
        raise UnrecognizedFormatError(f"Unrecognized file format, invalid bpp: {bpp}")
    if bpp not in (BPP_HIGH_COLORS, BPP_HIGH_COLORS_TRANSPARENT):
        raise UnsupportedFormatError(f"Unsupported bpp: {bpp}, palette images are not supported")
    # Bit-field masks only make sense with 32 bpp pixels
    allowed = (BI_RGB, BI_BITFIELDS) if bpp == BPP_HIGH_COLORS_TRANSPARENT else (BI_RGB,)
    if info_header.biCompression not in allowed:
        raise UnsupportedFormatError(
            f"Unsupported compression {info_header.biCompression} for {bpp} bpp")
    if info_header.biWidth < 0:
        raise UnrecognizedFormatError(f"Invalid image width: {info_header.biWidth}")


def load_bmp(filepath):
    try:
        f = open(filepath, "rb")
    except OSError as e:
        raise BMPIOError(f"Unable to open the input file {filepath}: {e}") from e
    with f:
        return BitmapFile.from_stream(f)


def create_bmp(width, height, has_alpha=True):
    return BitmapFile.create(width, height, has_alpha)


def save_bmp(filepath, bitmap):
    try:
        f = open(filepath, "wb")
    except OSError as e:
        raise BMPIOError(f"Unable to open the output file {filepath}: {e}") from e
    with f:
        bitmap.to_stream(f)
