class BMPError(Exception):
    """Base class for every error raised while reading, creating or writing a BMP."""


class BMPIOError(BMPError, OSError):
    """The byte stream could not be opened, read, seeked or written."""


class UnrecognizedFormatError(BMPError, ValueError):
    """The data is not a BMP file this library understands."""


class UnsupportedOrientationError(BMPError, ValueError):
    """Top-down images (negative height) are not supported."""


class UnsupportedFormatError(BMPError, ValueError):
    """A valid BMP, but in a pixel format we refuse to decode."""


class InvalidDimensionsError(BMPError, ValueError):
    pass


class OutOfBoundsError(BMPError, ValueError):
    def __init__(self, message, value, start, end):
        super().__init__(message)
        self.value = value
        self.start = start
        self.end = end

    def __str__(self):
        return f"{self.args[0]}: {self.value} not in [{self.start}, {self.end})"
