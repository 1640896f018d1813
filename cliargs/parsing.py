"""
cliargs parsing: turn the tail of an input line into a flag map and check it.

What this module provides
- split(line): whitespace tokenization of one input line.
- tokenize(tokens): the flag scanner, tokens → FlagMap (or None on a fatal fault).
- verify(flags, descriptors): required-flag check against a command's Flag list.

FlagMap
- A plain dict mapping a flag identifier (prefix stripped) to its value.
- A flag given without a value maps to None; an absent flag has no key.

Scanner states
- awaiting-flag: no flag seen yet on this line.
- holding-flag(id): the most recent flag token was `id`; it stays held until
  the next flag token, so it can receive at most one value.

    tokens      -a  v1  -b      v2  v3
    state    ∅  a   a   b       b   b
    map         a:∅ a:v1 b:∅    b:v2 ✗ duplicate value

Fault policy
- duplicate flag, duplicate value and malformed flag tokens are fatal: the
  fault is reported and tokenize() returns None.
- a value token before any flag is an orphan: a warning is reported, the token
  is dropped and scanning continues.
- a missing required flag makes verify() report and return False.

Every function takes a `trigger` callable used to report faults; by default
faults are printed to stderr (shell mode). The dispatcher passes its own
Reporter so all faults share its console and rendering switches.
"""
from .faults import *
from .utils import *

PREFIX = "-"


def _check_prefix(prefix, /):
    if not isinstance(prefix, str):
        raise TypeError("flag prefix must be a string")
    if len(prefix) != 1 or prefix.isspace():
        raise ValueError("flag prefix must be a single non-whitespace character")


def split(line, /):
    """
    Split one input line into whitespace-delimited tokens.

    Leading/trailing whitespace is ignored; runs of whitespace count as one
    separator. No quoting is recognized.

    Raises
    - TypeError: when line is not a string.
    """
    if not isinstance(line, str):
        raise TypeError("split() argument must be a string")
    return line.split()


def tokenize(tokens, /, *, prefix=PREFIX, index=1, trigger=trigger):
    """
    Scan flag/value tokens into a FlagMap.

    Parameters
    - tokens: Iterable[str]
      The input line's tokens with the command name already removed.
    - prefix: str (keyword-only)
      Single character that marks a flag token. All leading prefix characters
      are stripped, so "--verbose" and "-verbose" both name "verbose".
    - index: int (keyword-only)
      1-based ordinal of the first token on the line, used in messages.
    - trigger: Callable (keyword-only)
      Fault reporter; see cliargs.faults.trigger and cliargs.faults.Reporter.

    Returns
    - dict[str, str | None]: the FlagMap.
    - None: a fatal fault was reported (malformed or duplicated flag, duplicated value).

    Notes
    - In non-shell mode the reporter raises instead of returning, so the
      typed exception escapes from here.
    - A token made only of prefix characters ("-", "--") is a fatal
      MalformedFlagError. Earlier dispatchers stored it under an empty
      identifier and went on; this scanner rejects it on purpose, since an
      empty identifier can never match a declared Flag.
    """
    _check_prefix(prefix)

    flags = {}
    held = Unset

    for position, token in enumerate(tokens, index):
        if token.startswith(prefix):
            if not (identifier := token.lstrip(prefix)):
                trigger(MalformedFlagError(
                    "bad form of flag %r at %s position" % (token, ordinal(position)),
                    title="malformed flag",
                    code=FaultCode.MALFORMED_FLAG,
                    hint="flags are written as %sname, optionally followed by one value" % prefix,
                    input=token,
                    index=position,
                    docs=getdoc(FaultCode.MALFORMED_FLAG),
                ))
                return None
            if identifier in flags:
                trigger(DuplicateFlagError(
                    "flag %r at %s position was already provided" % (prefix + identifier, ordinal(position)),
                    title="duplicated flag",
                    code=FaultCode.DUPLICATED_FLAG,
                    hint="keep a single %s; each flag can be given only once" % (prefix + identifier),
                    input=identifier,
                    index=position,
                    docs=getdoc(FaultCode.DUPLICATED_FLAG),
                ))
                return None
            flags[identifier] = None
            held = identifier
        elif held is Unset:
            # nothing to attach the value to; drop it and keep scanning
            trigger(OrphanedValueWarning(
                "expected a flag, instead found %r at %s position" % (token, ordinal(position)),
                title="orphaned value",
                code=FaultCode.ORPHANED_VALUE,
                hint="values follow their flag (for example: %sname %s); this one was ignored" % (prefix, token),
                input=token,
                index=position,
                docs=getdoc(FaultCode.ORPHANED_VALUE),
            ))
        elif flags[held] is None:
            flags[held] = token
        else:
            trigger(DuplicateValueError(
                "flag %r already has the value %r, extra value %r at %s position" % (
                    prefix + held, flags[held], token, ordinal(position)
                ),
                title="duplicated value",
                code=FaultCode.DUPLICATED_VALUE,
                hint="give %s a single value; each flag takes at most one" % (prefix + held),
                input=held,
                value=token,
                index=position,
                docs=getdoc(FaultCode.DUPLICATED_VALUE),
            ))
            return None

    return flags


def verify(flags, descriptors, /, *, command=Unset, prefix=PREFIX, trigger=trigger):
    """
    Check that every required flag is present in a FlagMap.

    Parameters
    - flags: Mapping[str, str | None]
      The FlagMap produced by tokenize().
    - descriptors: Iterable[Flag]
      The command's declared flags (usually Descriptor.flags).
    - command: Unset | str (keyword-only)
      Command name, only used to make the message and hint precise.
    - prefix: str (keyword-only)
      Prefix shown in messages.
    - trigger: Callable (keyword-only)
      Fault reporter.

    Returns
    - True when every required flag is a key of `flags` (a None value counts
      as present); False after reporting the first missing one.

    Notes
    - Flags that are not declared by the command are accepted as-is.
    """
    for descriptor in descriptors:
        if descriptor.required and descriptor.identifier not in flags:
            name = prefix + descriptor.identifier
            if command is Unset:
                message = "missing required flag %r" % name
                hint = "add %s to the line" % name
            else:
                message = "missing required flag %r for command %r" % (name, command)
                hint = "add %s; run 'help %sc %s' to see every flag" % (name, prefix, command)
            trigger(MissingRequiredFlagError(
                message,
                title="missing required flag",
                code=FaultCode.MISSING_REQUIRED_FLAG,
                hint=hint,
                input=descriptor.identifier,
                flag=descriptor,
                command=coalesce(command),
                docs=getdoc(FaultCode.MISSING_REQUIRED_FLAG),
            ))
            return False
    return True


__all__ = (
    "split",
    "tokenize",
    "verify",
)
