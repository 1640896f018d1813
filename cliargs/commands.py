"""
cliargs command layer: describe, register and dispatch line commands.

What this module provides
- Command: the capability every command offers, describe() and execute(flags).
  Any object with both methods qualifies; subclassing is optional.
- command(...): wrap a plain function into a Command (direct or decorator form).
- HelpCommand: the built-in, self-describing `help` command.
- Commander: the registry and dispatcher for one input line at a time.
- invoke(commander, prompt): convenience runner (sys.argv, a string or tokens).

Dispatch pipeline (Commander.handle_input)
    line ─ split ─▶ name ─ lookup ─▶ command
                    rest ─ tokenize ─▶ flags ─ verify(describe().flags) ─▶ execute(flags)

Every stage that fails reports a fault (see cliargs.faults) and stops the
dispatch; nothing is executed and the Commander is left untouched, so the
next line is handled normally.

Quick start
    from cliargs import Commander, Flag, command

    @command("greet", "Greets someone", flags=[Flag("n", "Name to greet", required=True)])
    def greet(flags):
        print("hello,", flags["n"])

    commander = Commander([greet])
    commander.handle_input("greet -n world")   # hello, world
    commander.handle_input("help -c greet")    # renders greet's flags
    commander.handle_input("greet -h")         # same, via the reserved -h flag

Design notes
- The help command is built from a snapshot of every descriptor taken when
  the Commander is constructed; it holds no reference to the Commander.
- Command names are matched case-insensitively; registering the same name
  twice keeps the last registration and warns.
- Failures raised by execute() propagate unless guard=True.
"""
import difflib
import inspect
import sys
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Iterable

from rich.console import Console
from rich.text import Text

from .descriptors import Flag, Descriptor, RESERVED
from .faults import *
from .parsing import PREFIX, _check_prefix, split, tokenize, verify
from .utils import *


class Command(ABC):
    """
    The capability a dispatcher needs from a command.

    Implementations
    - describe() -> Descriptor: a fresh description (name, descr, flags).
    - execute(flags) -> None: run with the parsed FlagMap
      (dict[str, str | None]; None means the flag was given without a value).

    Any class providing both callables is considered a Command by
    isinstance()/issubclass(), whether or not it inherits from this class.
    """

    @abstractmethod
    def describe(self):
        """
        Return a new Descriptor for this command.
        """
        raise NotImplementedError

    @abstractmethod
    def execute(self, flags, /):
        """
        Run the command with the parsed, validated FlagMap.
        """
        raise NotImplementedError

    @classmethod
    def __subclasshook__(cls, subclass):
        if cls is not Command:
            return NotImplemented
        for name in ("describe", "execute"):
            for base in subclass.__mro__:
                if name in vars(base):
                    if not callable(vars(base)[name]):
                        return NotImplemented
                    break
            else:
                return NotImplemented
        return True


class FunctionCommand(Command):
    """
    A Command backed by a plain function receiving the FlagMap.

    Built by command(...). The instance stays callable and forwards calls to
    the wrapped function, so decorated functions keep working as functions.
    """

    def __init__(self, callback, /, name=Unset, descr=Unset, flags=()):
        if not callable(callback):
            raise TypeError("command callback must be callable")
        if descr is Unset and (doc := inspect.getdoc(callback)):
            descr = doc.strip().splitlines()[0]
        self._callback = callback
        self._name = coalesce(name, getattr(callback, "__name__", Unset))
        self._descr = descr
        self._flags = tuple(flags) if isinstance(flags, Iterable) else flags
        # Validate the metadata once, up front.
        self.describe()

    def describe(self):
        return Descriptor(self._name, self._descr, flags=self._flags)

    def execute(self, flags, /):
        self._callback(flags)

    def __call__(self, *args, **kwargs):
        return self._callback(*args, **kwargs)

    def __repr__(self):
        return f"command(name={self._name!r}, callback={getattr(self._callback, '__qualname__', self._callback)!r})"


def command(source=Unset, /, *args, **kwargs):
    """
    Create a Command from a function, or return a decorator that will.

    Invocation modes
    - Direct:     greet = command(greet_function, "greet", "Greets", flags=[...])
    - Decorator:  @command("greet", "Greets someone", flags=[...])
                  def greet(flags): ...
    - Bare:       @command
                  def greet(flags): "Greets someone."

    Defaults
    - name: the function's __name__.
    - descr: the first line of the function's docstring, if any.

    Returns
    - FunctionCommand | Callable[[Callable], FunctionCommand]
    """
    if isinstance(source, str):
        args = (source, *args)
        source = Unset

    @rename("command")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@command() must be applied to a callable")
        return FunctionCommand(source, *args, **kwargs)

    return wrapper(source) if source is not Unset else wrapper


class HelpCommand(Command):
    """
    Built-in command rendering help from a snapshot of descriptors.

    Flags
    - -c NAME: describe the command NAME and list its flags.
    - -f ID:   together with -c, describe one flag of that command.

    Rendering (plain form; colors follow the palette when colorful)
    - list:     "name, descr, # Flags: N" for every known command, help first.
    - command:  "'name' help", descr, blank line, "-id, descr, required: True|False".
    - flag:     "name -id", descr.

    Palette keys (override with __styles__ in __main__)
    - command-name, command-description, flag-name, flag-description,
      flag-count, required, header, missing-description
    """

    name = "help"

    def __init__(self, descriptors=(), /, *, prefix=PREFIX, console=Unset, colorful=True, trigger=trigger):
        _check_prefix(prefix)
        self._prefix = prefix
        self._console = Console() if console is Unset else console
        self._colorful = bool(colorful)
        self._trigger = trigger

        known = {self.name: self.describe()}
        for descriptor in descriptors:
            if not isinstance(descriptor, Descriptor):
                raise TypeError(f"help command expects descriptors, not {type(descriptor).__name__}")
            if (key := descriptor.name.lower()) == self.name:
                raise ValueError(f"command name {self.name!r} is reserved for the help command")
            known[key] = descriptor
        self._known = known

    known = mirror("known")

    def describe(self):
        return Descriptor(self.name, "Displays help information about commands and their flags.", flags=[
            Flag("c", "Displays information about the specified command and its flags"),
            Flag("f", "Displays information about a flag specific to the specified command"),
        ])

    def execute(self, flags, /):
        if "c" not in flags:
            self._display_all()
            return

        target = flags["c"]
        descriptor = self._known.get(target.lower()) if target is not None else None
        if descriptor is None:
            self._unknown_command(target)
            return

        if "f" in flags:
            self._display_flag(descriptor, flags["f"])
        else:
            self._display_command(descriptor)

    def _styles(self):
        return defaultdict(str, {
            "header": "bold #00E6FF",
            "command-name": "bold #36C5F0",
            "command-description": "#9CA3AF",
            "flag-name": "bold #22C55E",
            "flag-description": "#9CA3AF",
            "flag-count": "#FFD600",
            "required": "bold #FF4D94",
            "missing-description": "italic #737373",
        } | getattr(__import__("__main__"), "__styles__", {}))

    def _text(self, fragment, style):
        if isinstance(fragment, Text):
            return fragment if self._colorful else Text(fragment.plain)
        return Text(str(fragment), self._styles()[style] if self._colorful else "")

    def _descr(self, descr, style):
        if descr is None:
            return self._text("no description", "missing-description")
        return self._text(descr, style)

    def _print(self, *lines):
        for line in lines:
            self._console.print(line, soft_wrap=True)

    def _display_all(self):
        for descriptor in self._known.values():
            self._print(Text.assemble(
                self._text(descriptor.name, "command-name"),
                ", ",
                self._descr(descriptor.descr, "command-description"),
                ", ",
                self._text("# Flags: %d" % len(descriptor.flags), "flag-count"),
            ))

    def _display_command(self, descriptor):
        self._print(
            Text.assemble("'", self._text(descriptor.name, "command-name"), "' ", self._text("help", "header")),
            self._descr(descriptor.descr, "command-description"),
            Text(""),
        )
        for flag in descriptor.flags:
            self._print(Text.assemble(
                self._text(self._prefix + flag.identifier, "flag-name"),
                ", ",
                self._descr(flag.descr, "flag-description"),
                ", ",
                self._text("required: %s" % flag.required, "required" if flag.required else "flag-description"),
            ))

    def _display_flag(self, descriptor, identifier):
        flag = descriptor.lookup(identifier) if identifier is not None else None
        if flag is None:
            self._trigger(UnknownFlagForHelpError(
                "%s does not have a flag %s" % (descriptor.name, self._prefix + (identifier or "")),
                title="unknown flag",
                code=FaultCode.UNKNOWN_FLAG_FOR_HELP,
                hint="run 'help %sc %s' to see its flags" % (self._prefix, descriptor.name),
                command=descriptor.name,
                input=identifier,
                docs=getdoc(FaultCode.UNKNOWN_FLAG_FOR_HELP),
            ))
            return
        self._print(
            Text.assemble(
                self._text(descriptor.name, "command-name"),
                " ",
                self._text(self._prefix + flag.identifier, "flag-name"),
            ),
            self._descr(flag.descr, "flag-description"),
        )

    def _unknown_command(self, target):
        if target is None:
            message = "flag %sc needs a command name" % self._prefix
            suggestions = []
        else:
            message = "%s is not a registered command" % target
            suggestions = difflib.get_close_matches(target.lower(), self._known.keys(), 5)
        try:
            hint = "did you mean %r? run 'help' to list every command" % suggestions[0]
        except IndexError:
            hint = "run 'help' to list every command"
        self._trigger(UnknownCommandNameError(
            message,
            title="unknown command name",
            code=FaultCode.UNKNOWN_COMMAND_NAME,
            hint=hint,
            input=target,
            suggestions=suggestions,
            docs=getdoc(FaultCode.UNKNOWN_COMMAND_NAME),
        ))


class Commander:
    """
    Registry of commands and dispatcher of input lines.

    Construction
    - Takes any iterable of Commands (the Commander keeps its own tuple; the
      caller's collection is not modified).
    - Snapshots every command's descriptor, builds the HelpCommand from that
      snapshot and registers it under "help" ahead of every other command.
    - Registers commands under their lower-cased names; a repeated name keeps
      the last registration and reports a DuplicateCommandWarning.

    Options (keyword-only)
    - prefix: single flag-prefix character (default "-").
    - prog: program name shown in fault headers.
    - console: rich Console for help output and faults. When omitted, help is
      printed to stdout and faults to stderr.
    - shell: True prints faults and keeps going; False raises them.
    - colorful / fancy: rendering switches for help and faults.
    - guard: when True, exceptions escaping execute() are reported as
      DelegatedCommandError instead of propagating. Faults raised by execute()
      itself are reported as they are (raised again in non-shell mode).

    Raises
    - TypeError: a non-Command item, or describe() not returning a Descriptor.
    - ValueError: a bad prefix, a user command named "help", or a flag
      identifier starting with a custom prefix.
    """

    def __init__(
            self,
            commands=(),
            /,
            *,
            prefix=PREFIX,
            prog=Unset,
            console=Unset,
            shell=True,
            colorful=True,
            fancy=False,
            guard=False,
    ):
        _check_prefix(prefix)
        if isinstance(commands, str | Command) or not isinstance(commands, Iterable):
            raise TypeError("Commander() argument must be an iterable of commands")
        commands = tuple(commands)
        for command in commands:
            if not isinstance(command, Command):
                raise TypeError(f"Commander() argument must be an iterable of commands, not {type(command).__name__}")

        options = {
            "prog": coalesce(prog, "commander"),
            "shell": bool(shell),
            "colorful": bool(colorful),
            "fancy": bool(fancy),
        }
        if console is not Unset:
            options["console"] = console

        self._prefix = prefix
        self._guard = bool(guard)
        self._report = Reporter(**options)

        # Phase one: snapshot every descriptor and resolve name collisions.
        registry = {}
        snapshot = {}
        for command in commands:
            descriptor = command.describe()
            if not isinstance(descriptor, Descriptor):
                raise TypeError(f"{type(command).__name__}.describe() must return a descriptor")
            if (key := descriptor.name.lower()) == HelpCommand.name:
                raise ValueError(f"command name {HelpCommand.name!r} is reserved for the help command")
            for flag in descriptor.flags:
                if flag.identifier.startswith(prefix):
                    raise ValueError(
                        f"flag {flag.identifier!r} of command {descriptor.name!r} starts with the prefix {prefix!r}"
                    )
            if key in registry:
                self._report(DuplicateCommandWarning(
                    "command name %r is registered more than once; the last registration wins" % key,
                    title="duplicated command",
                    code=FaultCode.DUPLICATED_COMMAND,
                    hint="give every command a distinct name (names are case-insensitive)",
                    input=key,
                    docs=getdoc(FaultCode.DUPLICATED_COMMAND),
                ))
            registry[key] = command
            snapshot[key] = descriptor

        # Phase two: the help command only ever sees the snapshot.
        self._help = HelpCommand(
            snapshot.values(),
            prefix=prefix,
            console=Console() if console is Unset else console,
            colorful=colorful,
            trigger=self._report,
        )
        self._commands = {HelpCommand.name: self._help} | registry

    commands = mirror("commands")
    prefix = mirror("prefix")
    help = mirror("help")
    guard = mirror("guard")

    @property
    def shell(self):
        return self._report.shell

    def __contains__(self, name, /):
        return isinstance(name, str) and name.lower() in self._commands

    def __iter__(self):
        return iter(self._commands)

    def __len__(self):
        return len(self._commands)

    def __repr__(self):
        return f"commander(commands={list(self._commands)!r}, prefix={self._prefix!r})"

    def lookup(self, name, /):
        """
        Return the command registered under `name` (case-insensitive), or None.
        """
        if not isinstance(name, str):
            raise TypeError("lookup() argument must be a string")
        return self._commands.get(name.lower())

    def fallback(self, fallback, /):
        """
        Route every fault to `fallback` instead of the console (set once).

        Usable as a decorator:
            @commander.fallback
            def collect(fault): ...
        """
        return self._report.fallback(fallback)

    def trigger(self, fault, /, **options):
        """
        Report a fault with this Commander's runtime options merged in.
        """
        self._report(fault, **options)

    def handle_input(self, line, /):
        """
        Parse one input line and dispatch it.

        Stages
        1. split the line; no tokens → EmptyInputError.
        2. lower-case the first token and look it up → UnknownCommandError.
        3. tokenize the remaining tokens (stops on duplicate/malformed flags).
        4. the reserved -h flag renders help for the command instead (ignored by help).
        5. verify required flags against the command's current descriptor.
        6. execute the command with the FlagMap.

        Returns
        - True when a command was executed, False when the dispatch stopped.

        Raises
        - TypeError: when line is not a string.
        - CommandException subclasses in non-shell mode.
        - Whatever execute() raises, unless guard=True.
        """
        tokens = split(line)
        if not tokens:
            self.trigger(EmptyInputError(
                "no command given",
                title="empty input",
                code=FaultCode.EMPTY_INPUT,
                hint="type 'help' to see the available commands",
                docs=getdoc(FaultCode.EMPTY_INPUT),
            ))
            return False

        name = tokens[0].lower()
        if (command := self._commands.get(name)) is None:
            suggestions = difflib.get_close_matches(name, self._commands.keys(), 5)
            try:
                hint = "did you mean %r? you can also run 'help' to see every command" % suggestions[0]
            except IndexError:
                hint = "run 'help' to see every command"
            self.trigger(UnknownCommandError(
                "unknown command %r at first position" % name,
                title="unknown command",
                code=FaultCode.UNKNOWN_COMMAND,
                hint=hint,
                input=name,
                index=1,
                suggestions=suggestions,
                docs=getdoc(FaultCode.UNKNOWN_COMMAND),
            ))
            return False

        flags = tokenize(tokens[1:], prefix=self._prefix, index=2, trigger=self._report)
        if flags is None:
            return False

        if RESERVED in flags and command is not self._help:
            request = {"c": name}
            if flags[RESERVED] is not None:
                request["f"] = flags[RESERVED]
            self._help.execute(request)
            return True

        if not verify(flags, command.describe().flags, command=name, prefix=self._prefix, trigger=self._report):
            return False

        if not self._guard:
            command.execute(flags)
            return True

        try:
            command.execute(flags)
        except CommandException as exception:
            if not self.shell:
                raise
            self.trigger(exception)
            return False
        except Exception as exception:
            self.trigger(DelegatedCommandError(
                "command %r failed: %s" % (name, str(exception) or type(exception).__name__),
                title="command failed",
                code=FaultCode.DELEGATED_ERROR,
                hint="the command raised %s; the commander is still usable" % type(exception).__name__,
                input=name,
                exception=exception,
                docs=getdoc(FaultCode.DELEGATED_ERROR),
            ))
            return False
        return True

    def __invoke__(self, prompt=Unset):
        """
        Dispatch a prompt given as sys.argv (Unset), a string, or tokens.
        """
        if prompt is Unset:
            return self.handle_input(" ".join(sys.argv[1:]))
        if isinstance(prompt, str):
            return self.handle_input(prompt)
        if isinstance(prompt, Iterable):
            tokens = list(prompt)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("__invoke__() argument must be a string or an iterable of strings")
            return self.handle_input(" ".join(tokens))
        raise TypeError("__invoke__() argument must be a string or an iterable of strings")


def invoke(object, prompt=Unset, /):
    """
    Convenience runner for commanders.

    Parameters
    - object: anything implementing __invoke__(prompt), usually a Commander.
    - prompt: Unset (sys.argv[1:]), a string, or an iterable of tokens.

    Returns
    - whatever __invoke__ returns (Commander: True when a command ran).
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)
    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method")


__all__ = (
    "Command",
    "FunctionCommand",
    "HelpCommand",
    "Commander",
    "command",
    "invoke",
)
