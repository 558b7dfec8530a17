"""Exceptions raised while decoding game resources."""

from __future__ import annotations


class ConversionError(Exception):
    """Base class for every error raised by the conversion pipeline."""


class UnsupportedFormatError(ConversionError):
    """The data is not a resource of the expected type at all."""


class UnsupportedEncodingError(ConversionError):
    """The format is recognized but uses a mode we cannot decode."""


class TruncatedInputError(ConversionError):
    """The buffer ended before the format said it would."""


class InvalidDimensionsError(ConversionError):
    """The declared image size is zero or inconsistent."""


class OutOfRangeError(ConversionError):
    """A cursor was moved outside of its buffer."""
