"""Exception types raised by the conversion core."""


class Latex2RtfError(Exception):
    """Base class for all conversion errors."""


class SourceError(Latex2RtfError):
    """A named input source could not be opened."""

    def __init__(self, name: str, reason: str = ""):
        self.name = name
        self.reason = reason
        msg = f"Cannot open <{name}>"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class FatalConversionError(Latex2RtfError):
    """Conversion cannot continue (reported through ``Diagnostics.fatal``)."""
