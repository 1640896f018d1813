from rich.console import Console
from rich.pretty import pprint

from cliargs import *

__prog__ = "demo"

console = Console()
greetings = []


@command("greet", "Greets someone", flags=[
    Flag("n", "Name to greet", required=True),
    Flag("loud", "Shout the greeting"),
])
def greet(flags):
    message = "hello, %s" % flags["n"]
    greetings.append(message)
    console.print(message.upper() if "loud" in flags else message)


@command
def history(flags):
    """Shows every greeting so far."""
    pprint(greetings)


class Quit(Command):
    def __init__(self):
        self.running = True

    def describe(self):
        return Descriptor("quit", "Leaves the prompt")

    def execute(self, flags, /):
        self.running = False


if __name__ == '__main__':
    quit = Quit()
    commander = Commander([greet, history, quit], prog=__prog__, console=console, guard=True)
    while quit.running:
        try:
            commander.handle_input(console.input("[bold]> [/]"))
        except (EOFError, KeyboardInterrupt):
            break
