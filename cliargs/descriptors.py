r"""
cliargs descriptors: static, introspectable metadata about commands.

Overview
- Flag: one flag a command understands (identifier, short description, required).
- Descriptor: one command (name, short description, ordered flags).

Both are immutable values: fields are exposed through read-only properties,
equality and hashing follow the field values, and a fresh Descriptor is built
every time a command is asked to describe() itself.

Validation highlights
- Flag identifiers are written without the prefix ("v", not "-v"), contain no
  whitespace, and "h" is reserved for the help shortcut (`name -h`).
- Command names are non-empty and contain no whitespace.
- Flag identifiers are unique within one Descriptor.
- descr strings are trimmed; empty strings are rejected (omit descr instead).

Quick example:
    >>> from cliargs.descriptors import Descriptor, Flag
    >>> Descriptor("greet", "Greets someone", [
    ...     Flag("n", "Name to greet", required=True),
    ...     Flag("loud", "Shout the greeting"),
    ... ])
    descriptor(name='greet', descr='Greets someone', flags=(flag(...), flag(...)))
"""
import functools
import operator
import re

from rich.text import Text

from .utils import *

# Reserved flag identifier, consumed by the dispatcher to route to help.
RESERVED = "h"


class DescriptorType(type):
    """
    Metaclass that turns descriptor classes into read-only value types.

    Responsibilities
    - Expose every name in __introspectable__ as a read-only property (mirror()).
    - Provide stable __repr__/__rich_repr__ for diagnostics.
    - Provide value semantics (__eq__/__hash__) over the introspectable fields.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in error messages.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        @rename("__eq__")
        def __eq__(self, other):
            if type(other) is not type(self):
                return NotImplemented
            return tuple(self.__rich_repr__()) == tuple(other.__rich_repr__())
        self.__eq__ = __eq__

        @rename("__hash__")
        def __hash__(self):
            # Text is unhashable; equal Texts share their plain string.
            return hash((type(self), *(
                (name, value.plain if isinstance(value, Text) else value)
                for name, value in self.__rich_repr__()
            )))
        self.__hash__ = __hash__

        return self


def _sanitize_descr(cls, metadata, /):
    """
    Internal: validate and normalize the optional 'descr' field.

    - Unset → None.
    - str → trimmed, must be non-empty.
    - Text → kept as-is (pre-styled descriptions).
    """
    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)


class Flag(metaclass=DescriptorType):
    """
    Static description of one flag a command accepts.

    A flag is written on the input line as the prefix followed by its
    identifier (e.g. "-n"), optionally followed by a single value token.
    Whether a value is expected is up to the command: the dispatcher only
    checks that required flags are present.

    Properties
    - identifier: str, without the prefix character.
    - descr: str | Text | None, short help text.
    - required: bool, whether the command refuses to run without this flag.
    """

    __introspectable__ = (
        "identifier",
        "descr",
        "required",
    )

    def __init__(self, identifier, descr=Unset, /, *, required=False):
        """
        Construct a Flag.

        Parameters
        - identifier: str
          Non-empty, no whitespace, must not start with '-', must not be "h".
        - descr: Unset | str | Text
          Short description shown by help. Becomes None when omitted.
        - required: bool
          Missing required flags abort the dispatch.

        Raises
        - TypeError: on wrongly typed fields.
        - ValueError: on an empty, prefixed, spaced or reserved identifier.
        """
        cls = type(self)
        if not isinstance(identifier, str):
            raise TypeError(f"{cls.__typename__} identifier must be a string")
        if not identifier:
            raise ValueError(f"{cls.__typename__} identifier cannot be empty")
        if re.search(r"\s", identifier):
            raise ValueError(f"{cls.__typename__} identifier {identifier!r} cannot contain whitespace")
        if identifier.startswith("-"):
            raise ValueError(
                f"{cls.__typename__} identifier {identifier!r} must be given without its prefix"
                f" (use {identifier.lstrip('-')!r})"
            )
        if identifier == RESERVED:
            raise ValueError(f"{cls.__typename__} identifier {RESERVED!r} is reserved for help")
        if not isinstance(required, bool):
            raise TypeError(f"{cls.__typename__} 'required' must be a boolean")

        metadata = {"identifier": identifier, "descr": descr, "required": required}
        _sanitize_descr(cls, metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    def __setattr__(self, name, value, /):
        if not name.startswith("_") or hasattr(self, name):
            raise AttributeError(f"{type(self).__typename__} is read-only")
        object.__setattr__(self, name, value)


class Descriptor(metaclass=DescriptorType):
    """
    Static description of one command: what it is called, what it does, and
    which flags it accepts.

    Descriptors are produced on demand by Command.describe() and treated as
    plain values; the help command keeps a snapshot of them.

    Properties
    - name: str, the command name typed on the input line.
    - descr: str | Text | None, short help text.
    - flags: tuple[Flag, ...], in declaration order.
    """

    __introspectable__ = (
        "name",
        "descr",
        "flags",
    )

    def __init__(self, name, descr=Unset, /, flags=()):
        """
        Construct a Descriptor.

        Parameters
        - name: str
          Non-empty, no whitespace. Lookup is case-insensitive.
        - descr: Unset | str | Text
          Short description shown by help. Becomes None when omitted.
        - flags: Iterable[Flag]
          Flags in the order help should list them. Identifiers must be unique.

        Raises
        - TypeError: on wrongly typed fields or non-Flag items.
        - ValueError: on an empty or spaced name, or duplicated flag identifiers.
        """
        cls = type(self)
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} name must be a string")
        if not name:
            raise ValueError(f"{cls.__typename__} name cannot be empty")
        if re.search(r"\s", name):
            raise ValueError(f"{cls.__typename__} name {name!r} cannot contain whitespace")
        if isinstance(flags, str | Flag):
            raise TypeError(f"{cls.__typename__} flags must be an iterable of flags")
        try:
            flags = list(flags)
        except TypeError:
            raise TypeError(f"{cls.__typename__} flags must be an iterable of flags") from None

        seen = set()
        for flag in flags:
            if not isinstance(flag, Flag):
                raise TypeError(f"{cls.__typename__} flags must be an iterable of flags, not {type(flag).__name__}")
            if flag.identifier in seen:
                raise ValueError(f"{cls.__typename__} {name!r} declares flag {flag.identifier!r} more than once")
            seen.add(flag.identifier)

        metadata = {"name": name, "descr": descr, "flags": tuple(flags)}
        _sanitize_descr(cls, metadata)

        for field, object in metadata.items():
            setattr(self, "_" + field, object)

    def __setattr__(self, name, value, /):
        if not name.startswith("_") or hasattr(self, name):
            raise AttributeError(f"{type(self).__typename__} is read-only")
        object.__setattr__(self, name, value)

    def lookup(self, identifier, /):
        """
        Return the Flag with the given identifier, or None when not declared.
        """
        for flag in self._flags:
            if flag.identifier == identifier:
                return flag
        return None

    @property
    def required(self):
        """
        Identifiers of the required flags, in declaration order.
        """
        return tuple(flag.identifier for flag in self._flags if flag.required)


__all__ = (
    "Flag",
    "Descriptor",
)

# Remove the internal metaclass from the module namespace; not part of the public API.
del DescriptorType
