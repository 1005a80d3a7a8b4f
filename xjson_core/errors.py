"""Exception hierarchy shared by the encoder, decoder and revivers."""


class XJSONError(Exception):
    """Base class for every xjson failure."""


class XJSONEncodeError(XJSONError, TypeError):
    """Raised when a value cannot be encoded as an extended JSON document."""


class XJSONDecodeError(XJSONError, ValueError):
    """Raised when an extended JSON document cannot be decoded."""


class ConflictingTagError(XJSONDecodeError):
    """A registry lists the same path more than once."""


class InvalidBase64Error(XJSONDecodeError):
    """``B`` reviver received text outside the strict base64 alphabet."""


class BigIntConversionError(XJSONDecodeError):
    """``n`` reviver received text that is not an integer literal."""


class BigIntRangeError(XJSONDecodeError):
    """``n`` reviver received a number with a fractional part."""


class ReviverTypeError(XJSONDecodeError, TypeError):
    """A reviver received a value of the wrong shape."""
