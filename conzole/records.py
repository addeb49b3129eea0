"""
Conzole resolved-argument records.

A record is built fresh for every invocation: one field per argument and per
visible flag of the matched command. Handlers that annotate their parameter
with a dataclass, NamedTuple or TypedDict receive an instance of that type
(see conzole.schema.shapeof); every other handler receives a Record.
"""
from collections.abc import Mapping


class Record(Mapping):
    """
    Read-only mapping with attribute access.

    >>> record = Record(container="web", force=True)
    >>> record.container, record["force"]
    ('web', True)
    """
    __slots__ = ("_values",)

    def __init__(self, values=(), /, **fields):
        object.__setattr__(self, "_values", dict(values, **fields))

    def __getitem__(self, key):
        return self._values[key]

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __getattr__(self, name):
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError(f"record has no field {name!r}") from None

    def __setattr__(self, name, value):
        raise AttributeError("record fields are read-only")

    def __delattr__(self, name):
        raise AttributeError("record fields are read-only")

    def __repr__(self):
        return "record(%s)" % ", ".join("%s=%r" % item for item in self._values.items())

    def __rich_repr__(self):
        yield from self._values.items()


__all__ = (
    "Record",
)
