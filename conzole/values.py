"""
Conzole value coder: text <-> typed values for flags and arguments.

Scope
- Exactly four value types are supported: int, float, bool and str.
- encode_default(type): the zero value a flag falls back to when no default is given.
- decode(text, type): typed value for one token, or DecodeError.
- encode(value): text for a typed value (help output, "[default: ...]").

Semantics
- bool decoding never fails: "true" and "1" are true, anything else is false.
- int/float use standard base-10 parsing; surrounding whitespace is rejected.
- The coder knows nothing about the schema; whether a failure is fatal
  (arguments) or soft (flags) is decided by the dispatcher.
"""
import logging

logger = logging.getLogger(__name__)

TYPES = (int, float, bool, str)

_ZEROS = {int: 0, float: 0.0, bool: False, str: ""}


class DecodeError(ValueError):
    """
    Raised when a token cannot be converted to the requested value type.
    """

    def __init__(self, text, type, /):
        super().__init__(f"cannot decode {text!r} as {typename(type)}")
        self.text = text
        self.type = type


def supported(type, /):
    """
    Return True when 'type' is one of the value types the coder understands.
    """
    # identity matters: subclasses (e.g. IntEnum) are not supported
    return any(type is candidate for candidate in TYPES)


def typename(type, /):
    """
    Short user-facing label for a value type (used in help and messages).
    """
    if not supported(type):
        raise TypeError(f"unsupported value type {type!r}")
    return {int: "int", float: "float", bool: "bool", str: "string"}[type]


def encode_default(type, /):
    """
    Return the zero value for a supported type (0, 0.0, False or "").
    """
    if not supported(type):
        raise TypeError(f"unsupported value type {type!r}")
    return _ZEROS[type]


def decode(text, type, /):
    """
    Convert one token to a typed value.

    raises
    - TypeError: unsupported type or non-string text.
    - DecodeError: int/float text that does not parse.
    """
    if not isinstance(text, str):
        raise TypeError("decode() first argument must be a string")
    if not supported(type):
        raise TypeError(f"unsupported value type {type!r}")

    if type is bool:
        return text in ("true", "1")
    if type is str:
        return text

    try:
        # int()/float() tolerate surrounding whitespace; tokens must not
        if text != text.strip():
            raise ValueError(text)
        return int(text, 10) if type is int else float(text)
    except ValueError:
        logger.debug("decode failed for %r as %s", text, typename(type))
        raise DecodeError(text, type) from None


def encode(value, /):
    """
    Render a typed value back to the text form decode() accepts.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if not supported(builtin := type(value)):
        raise TypeError(f"unsupported value type {builtin!r}")
    return str(value)


__all__ = (
    "DecodeError",
    "encode_default",
    "decode",
    "encode",
    "typename",
)
