"""
Argot faults (user-input errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
  Codes are grouped by domain to keep copy consistent and make logs/searches
  predictable.
- UsageException: base type that carries a message + options and knows how to
  render itself (rich) in a friendly, actionable way.
- trigger(): central entry point to surface a fault (raise it, or print it when
  running in shell mode).
- getdoc(): optional description lookup for a code from the host application.

Propagation
- Faults are user-input errors, not transient failures: nothing is retried.
- Messages are pre-formatted for direct display in chat (markdown bold/code),
  so the calling layer can forward them verbatim.

Integration
- The usage layer raises these exceptions; a bot layer catches UsageException
  and either forwards str(fault) to the user or calls trigger(fault, shell=True)
  to print it to the console.
"""
import copy
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
    canonical fault codes used across the engine (stable identifiers).

    grouping (by high-level domain)
    - schema (2110x)
      • MISSING_NAME
    - resolvers (2120x)
      • UNKNOWN_RESOLVER_TYPE, INVALID_ARGUMENT
    - tokens (2130x)
      • INSUFFICIENT_ARGUMENTS, UNTERMINATED_QUOTE

    normalize() allows host remapping to custom labels while keeping codes stable.
    """
    # --- schema errors (21xxx) ---
    MISSING_NAME                = 21101

    # --- resolver errors (21xxx) ---
    UNKNOWN_RESOLVER_TYPE       = 21201
    INVALID_ARGUMENT            = 21202

    # --- token errors (21xxx) ---
    INSUFFICIENT_ARGUMENTS      = 21301
    UNTERMINATED_QUOTE          = 21302

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class UsageException(Exception):
    """
    base type of every fault raised while loading or resolving a usage.

    options
    - code: FaultCode of the fault.
    - title: short lowercased title shown in the rendered header.
    - hint: one actionable sentence.
    - docs: optional documentation (see getdoc).
    - shell / fancy / colorful: rendering switches consumed by trigger().
    - any fault-specific payload (argument, index, usage, ...).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return "" if self.message is Unset else self.message

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        code = self.options.get("code")
        header = Text.assemble(
            "[ ",
            text(getattr(main, "__prog__", self.options.get("command") or "argot"), "prog-name"),
            " — ",
            text(code.normalize() if isinstance(code, FaultCode) else "?", "code"),
            " | ",
            text(str(self.options.get("title", "error")).title(), "error-title"),
            " ]"
        )
        message = text(str(self), "error-message")
        hint = Text.assemble(text(" → ", "hint-arrow"), text(self.options.get("hint"), "hint"))

        if self.options.get("fancy", False):
            return Panel(Group(message, hint), title=header, title_align="left")
        return Group(header, message, hint)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MissingNameError(UsageException): ...
class UnknownResolverTypeError(UsageException): ...
class InsufficientArgumentsError(UsageException): ...
class UnterminatedQuoteError(UsageException): ...


class InvalidArgumentError(UsageException):
    """
    a resolver rejected a raw value.

    the message is kept structured: `template` is the resolver's own message,
    which may contain the `{arg}` placeholder, and the `argument` option is the
    spec that was being resolved. the displayed message is rendered from both,
    so a formatting or localization layer can call format() with its own style.
    """
    placeholder = "{arg}"

    def __init__(self, template, /, **options):
        assert isinstance(template, str)
        self.template = template
        self.options = MappingProxyType(options)
        super().__init__(self.format(), **options)

    def format(self, style="**`%s`**", /):
        """
        render the template, substituting every placeholder with the styled
        display name of the argument (or "argument" when there is none).
        """
        name = getattr(self.options.get("argument"), "display_name", None) or "argument"
        return "Invalid input: " + self.template.replace(self.placeholder, style % name)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.template, **{**self.options, **overrides})


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see UsageException).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode the fault is rendered on the rich stderr console; otherwise it is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    when not found, returns None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "UsageException",
    "MissingNameError",
    "UnknownResolverTypeError",
    "InvalidArgumentError",
    "InsufficientArgumentsError",
    "UnterminatedQuoteError",
    "FaultCode",
    "trigger",
    "getdoc",
)
