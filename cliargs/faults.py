"""
cliargs faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue
  raised while dispatching a line (errors and warnings).
- CommandException / CommandWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased, actionable way.
- trigger(): central entry point to surface any fault.
- Reporter: a bound set of runtime options (plus an optional fallback) that the
  dispatcher hands to the tokenizer, the validator and the help command.
- getdoc(): optional description lookup for a code from the host application.

Shell vs. non-shell
- shell (default): faults are printed to the console and control returns to the
  caller. A bad line never terminates the process.
- non-shell: errors are raised and warnings go through warnings.warn, which is
  what embedding code and tests usually want.

Recognized options
- console: rich Console to print to (defaults to a stderr console).
- shell, colorful, fancy: rendering switches (see above; fancy wraps in a Panel).
- prog: program name in the header (overridden by __prog__ in __main__).
- title, code, hint, docs: fault copy.
- anything else (input, index, command, ...) is kept as payload for fallbacks.

Host hooks (read from __main__)
- __styles__: palette overrides, __codes__: code labels, __docs__: code docs,
  __prog__: program name.
"""
import copy
import inspect
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used by the dispatcher (stable identifiers).

    grouping
    - routing (1110x)
      • UNKNOWN_COMMAND, EMPTY_INPUT, UNKNOWN_COMMAND_NAME
    - flags (1111x)
      • MALFORMED_FLAG, DUPLICATED_FLAG, DUPLICATED_VALUE,
        MISSING_REQUIRED_FLAG, UNKNOWN_FLAG_FOR_HELP
    - delegated (1113x)
      • DELEGATED_ERROR
    - warnings (12xxx)
      • ORPHANED_VALUE, DUPLICATED_COMMAND

    normalize() lets the host remap codes to its own labels.
    """
    # --- routing errors (11xxx) ---
    UNKNOWN_COMMAND         = 11101
    EMPTY_INPUT             = 11102
    UNKNOWN_COMMAND_NAME    = 11103

    # --- flag errors (11xxx) ---
    MALFORMED_FLAG          = 11111
    DUPLICATED_FLAG         = 11115
    DUPLICATED_VALUE        = 11116
    MISSING_REQUIRED_FLAG   = 11117
    UNKNOWN_FLAG_FOR_HELP   = 11118

    # --- delegated errors (11xxx) ---
    DELEGATED_ERROR         = 11131

    # --- warnings (12xxx) ---
    ORPHANED_VALUE          = 12111
    DUPLICATED_COMMAND      = 12121

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, /):
    """
    build the rich renderable shared by errors and warnings.

    layout
    - header: "[ prog — code | Title ]"
    - message
    - " → hint" (when a hint is present)
    - docs (when the host documented the code)
    fancy=True wraps message/hint/docs in a Panel titled with the header.
    """
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", True)

    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment if colorful else Text(fragment.plain)
        return Text(str(fragment), styles[style] if colorful else "")

    prog = getattr(main, "__prog__", options.get("prog", "cliargs"))
    code = options.get("code")

    header = Text.assemble(
        "[ ",
        text(prog, "prog-name"),
        " — ",
        text(code.normalize() if isinstance(code, FaultCode) else code or "?", "code"),
        " | ",
        text(str(options.get("title", type(fault).__name__)).title(), "title"),
        " ]"
    )
    body = [text(fault.message, "message")]
    if hint := options.get("hint"):
        body.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
    if docs := options.get("docs"):
        body.append(text(docs, "docs"))

    if options.get("fancy", False):
        return Panel(Group(*body), title=header, title_align="left")

    return Group(header, *body)


class CommandException(Exception):
    """
    base class of every dispatch error.

    the message is the first positional argument; everything else travels in
    the read-only `options` mapping and can be overridden with copy.replace().
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Text | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "title": "bold #FF4DA6",  # friendly pinky title

            # body
            "message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
            "docs": "#737373",
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", True):
            raise self from None
        self.options.get("console", console).print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class EmptyInputError(CommandException): ...
class UnknownCommandError(CommandException): ...
class UnknownCommandNameError(CommandException): ...
class MalformedFlagError(CommandException): ...
class DuplicateFlagError(CommandException): ...
class DuplicateValueError(CommandException): ...
class MissingRequiredFlagError(CommandException): ...
class UnknownFlagForHelpError(CommandException): ...
class DelegatedCommandError(CommandException): ...


class CommandWarning(ABC, Warning):
    """
    base class of every dispatch warning (non-fatal, the dispatch goes on).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Text | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",  # amber fault code for warnings
            "title": "bold #FFC2E0",  # softer pinky title for warnings

            # body
            "message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
            "docs": "#737373",
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", True):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        self.options.get("console", console).print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class OrphanedValueWarning(CommandWarning): ...
class DuplicateCommandWarning(CommandWarning): ...


def _check(fault, /):
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace(fault, **options)
      before triggering.
    - in shell mode the fault is printed; otherwise errors raise and warnings warn.
    """
    _check(fault)
    copy.replace(fault, **options).__trigger__()


class Reporter:
    """
    runtime options bound once and applied to every fault it reports.

    the dispatcher owns one Reporter and hands it (not itself) to the pieces
    that report faults, so nothing holds a reference back into the registry.

    usage
        report = Reporter(shell=True, colorful=False, console=my_console)
        report(UnknownCommandError("unknown command 'x'", title="unknown command"))

    a fallback registered with Reporter.fallback receives the merged fault
    instead of the console (e.g. to collect diagnostics in a host UI).
    """

    def __init__(self, **options):
        self._options = options
        self._fallback = Unset

    @property
    def options(self):
        return MappingProxyType(self._options)

    @property
    def shell(self):
        return self._options.get("shell", True)

    def fallback(self, fallback, /):
        """
        register a one-time fallback handler for faults.

        rules
        - must be callable; receives a single fault with options merged.
        - can be set only once.

        returns the same callable, enabling decorator-style usage.
        """
        if not callable(fallback):
            raise TypeError("reporter fallback must be callable")
        if self._fallback is not Unset:
            raise TypeError("reporter fallback cannot be overridden")
        self._fallback = fallback
        return fallback

    def __call__(self, fault, /, **options):
        _check(fault)
        fault = copy.replace(fault, **{**self._options, **options})
        if self._fallback is not Unset:
            self._fallback(fault)
            return
        fault.__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    returns None when not found.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "CommandException",
    "EmptyInputError",
    "UnknownCommandError",
    "UnknownCommandNameError",
    "MalformedFlagError",
    "DuplicateFlagError",
    "DuplicateValueError",
    "MissingRequiredFlagError",
    "UnknownFlagForHelpError",
    "DelegatedCommandError",
    "CommandWarning",
    "OrphanedValueWarning",
    "DuplicateCommandWarning",
    "FaultCode",
    "Reporter",
    "trigger",
    "getdoc",
)
