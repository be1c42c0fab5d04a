"""
Palettize error types.

Every error raised by the package derives from PaletteError. None of them are
retried internally: they signal bad settings or bad input data.
"""


class PaletteError(Exception):
    """Base class for palette extraction errors."""
    pass


class ConfigurationError(PaletteError, ValueError):
    """Invalid settings value or unknown similarity method."""
    pass


class InvalidColorError(PaletteError, ValueError):
    """RGB channel or percentage outside its valid range."""
    pass


class ImageLoadError(PaletteError):
    """Image file could not be read or decoded."""
    pass
