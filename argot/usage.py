"""
Argot usage layer: load a command usage once, resolve raw tokens per invocation.

What this module provides
- Usage: owns the ordered argument specs of one command.
  • load(schema): normalize one spec or a sequence of specs (Argument instances
    or plain mappings), fill defaults and compute the minimum token count.
  • resolve(context, tokens, call): check arity, regroup quoted tokens, fan out
    the coercions to the registry and return the name → value mapping.
  • render(call): the usage line shown to users (`!ban <user> [reason]`).
- Call: the (prefix, command) pair used only to render usage lines.
- tokenize(prompt): normalize a message string or a token iterable.

Token walk
- Required arguments always take the token under the cursor.
- Optional arguments take a token only while there are more tokens than
  required arguments left to feed (“optional slots”); otherwise they are
  skipped and receive their default, if any.
- A token starting with '"' opens a quoted group that runs up to the first
  token (the same one included) ending with '"'. The group is joined with
  single spaces and every '"' is stripped. No nesting, no escapes.

Concurrency
- The walk is synchronous: every token decision is made before any coercion
  starts. Coercions then run concurrently; each writes only its own key.
- When several coercions fail, whichever fails first is raised. Which one that
  is depends on scheduling and is not deterministic. Coercions still in flight
  are left to finish and their outcome is discarded.

Quick start
    from argot import Argument, Call, Registry, Usage

    usage = Usage(Registry.builtin()).load([
        Argument("amount", type="int"),
        Argument("reason", optional=True, default="no reason"),
    ])
    await usage.resolve(message, ['5', '"spam', 'links"'], Call("!", "warn"))
    # {'amount': 5, 'reason': 'spam links'}
"""
import asyncio
import functools
from collections import namedtuple
from collections.abc import Iterable, Mapping

from .arguments import Argument
from .faults import *
from .utils import *


@functools.cache
def _ordinal(number):
    """
    Return a human-friendly ordinal label for a 1-based position.

    - 1..10 are rendered as words ("first"…"tenth").
    - Other numbers use numeric ordinals with correct English suffixes.
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    # 11th, 12th, 13th (and 111th, 112th, 113th, …)
    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


class Call(namedtuple("Call", ("prefix", "command"), defaults=("", ""))):
    """
    Calling context of one invocation: the prefix in use and the command name.
    """
    __slots__ = ()

    @classmethod
    def of(cls, guild, command, /):
        """
        Build a Call from a guild settings record (anything with a .prefix).
        """
        return cls(guild.prefix, command)


def _call(call):
    """
    Internal: accept a Call, a mapping with prefix/command keys, any object with
    prefix/command attributes, or Unset/None for an empty context.
    """
    if call is Unset or call is None:
        return Call()
    if isinstance(call, Call):
        return call
    if isinstance(call, Mapping):
        return Call(str(call.get("prefix", "")), str(call.get("command", "")))
    return Call(str(getattr(call, "prefix", "")), str(getattr(call, "command", "")))


def tokenize(prompt, /):
    """
    Normalize a prompt into a list of raw tokens.

    - str: split on whitespace; quote characters are kept so that the usage
      walk can regroup quoted arguments.
    - Iterable[str]: used as-is (each element must be a string).

    Raises
    - TypeError: when prompt is neither a string nor an iterable of strings.
    """
    if isinstance(prompt, str):
        return prompt.split()
    if not isinstance(prompt, Iterable):
        raise TypeError("tokenize() argument must be a string or an iterable of strings")
    tokens = list(prompt)
    for token in tokens:
        if not isinstance(token, str):
            raise TypeError("tokenize() argument must be a string or an iterable of strings")
    return tokens


def _discard(task):
    # Retrieve the outcome of a straggling coercion so it is not reported as unhandled.
    if not task.cancelled():
        task.exception()


class Usage:
    """
    Ordered argument specs of one command, plus the resolution logic.

    Lifecycle
    - Built once per command with a registry, loaded once with load(), then
      reused for every invocation. resolve() never mutates the usage.

    Properties
    - arguments: tuple[Argument, ...] in declared order.
    - minimum: number of required arguments (the minimum token count).
    - registry: the resolver registry used for coercion.
    """

    arguments = mirror("arguments")
    minimum = mirror("minimum")
    registry = mirror("registry")

    def __init__(self, registry, schema=Unset, /):
        if not callable(getattr(registry, "coerce", None)):
            raise TypeError("usage registry must provide a 'coerce' coroutine")
        self._registry = registry
        self._arguments = ()
        self._minimum = 0
        if schema is not Unset:
            self.load(schema)

    def load(self, schema, /):
        """
        Normalize and store the usage schema; returns self.

        Parameters
        - schema: Argument | Mapping | Iterable[Argument | Mapping]

        Raises
        - MissingNameError: a spec has no name.
        - TypeError: the schema or one of its items has the wrong shape.
        - ValueError: two specs share a name.
        """
        if isinstance(schema, Argument | Mapping):
            schema = (schema,)
        elif not isinstance(schema, Iterable) or isinstance(schema, str):
            raise TypeError("load() argument must be an argument or an iterable of arguments")

        arguments = []
        names = set()
        for spec in schema:
            if isinstance(spec, Mapping):
                spec = Argument.from_mapping(spec)
            elif not isinstance(spec, Argument):
                raise TypeError("load() items must be arguments or mappings")
            if spec.name in names:
                raise ValueError(f"usage argument name {spec.name!r} is already in use")
            names.add(spec.name)
            arguments.append(spec)

        self._arguments = tuple(arguments)
        self._minimum = sum(not argument.optional for argument in arguments)
        return self

    @property
    def required(self):
        return tuple(argument for argument in self._arguments if not argument.optional)

    @property
    def optional(self):
        return tuple(argument for argument in self._arguments if argument.optional)

    def render(self, call=Unset, /):
        """
        Usage line: `{prefix}{command} <required> [optional] ...` in declared order.
        """
        call = _call(call)
        return " ".join((f"{call.prefix}{call.command}", *(argument.render() for argument in self._arguments)))

    def _insufficient(self, tokens, call):
        usage = self.render(call)
        return InsufficientArgumentsError(
            "Insufficient arguments - Expected at least **%d**, saw **%d**.\n**Correct usage**: `%s`" % (
                self._minimum, len(tokens), usage
            ),
            title="insufficient arguments",
            code=FaultCode.INSUFFICIENT_ARGUMENTS,
            expected=self._minimum,
            seen=len(tokens),
            usage=usage,
            command=_call(call).command,
            hint="run it as %s" % usage,
            docs=getdoc(FaultCode.INSUFFICIENT_ARGUMENTS),
        )

    def _walk(self, tokens, call):
        """
        Internal: pair every argument with its raw value or its default.

        Yields (argument, raw, True) for arguments to coerce and
        (argument, default, False) for skipped optionals that have a default.
        """
        count = len(tokens)
        slots = count - self._minimum
        index = consumed = 0

        for argument in self._arguments:
            if argument.optional:
                # A quoted group may have swallowed the tokens meant for this slot.
                if slots > consumed and index < count:
                    consumed += 1
                else:
                    if argument.default is not Unset:
                        yield argument, argument.default, False
                    continue
            elif index >= count:
                raise self._insufficient(tokens, call)

            raw = tokens[index]
            if raw.startswith('"'):
                for close in range(index, count):
                    if tokens[close].endswith('"'):
                        break
                else:
                    raise UnterminatedQuoteError(
                        "missing end quote for %s from %s position" % (argument.display_name, _ordinal(index + 1)),
                        title="unterminated quote",
                        code=FaultCode.UNTERMINATED_QUOTE,
                        index=index,
                        token=raw,
                        argument=argument,
                        command=_call(call).command,
                        hint='close the quoted text with a trailing " character',
                        docs=getdoc(FaultCode.UNTERMINATED_QUOTE),
                    )
                raw = " ".join(tokens[index:close + 1]).replace('"', "")
                index = close
            index += 1
            yield argument, raw, True

    async def resolve(self, context, tokens, call=Unset, /):
        """
        Turn raw tokens into a name → value mapping.

        Parameters
        - context: opaque invocation context (e.g. the chat message), forwarded
          unchanged to every resolver.
        - tokens: str | Iterable[str] (see tokenize).
        - call: Call | Mapping | object with prefix/command, used for usage lines.

        Returns
        - dict in declared order: coerced values for consumed arguments,
          defaults for skipped optionals (skipped optionals without a default
          are left out).

        Raises
        - InsufficientArgumentsError, UnterminatedQuoteError: token errors.
        - UnknownResolverTypeError, InvalidArgumentError: coercion errors.
        """
        if not self._arguments:
            return {}

        tokens = tokenize(tokens)
        if len(tokens) < self._minimum:
            raise self._insufficient(tokens, call)

        # The whole walk completes before any coercion is scheduled.
        plan = list(self._walk(tokens, call))

        result = {}
        tasks = []
        for argument, value, pending in plan:
            if pending:
                result[argument.name] = Unset
                tasks.append((argument.name, asyncio.ensure_future(self._registry.coerce(argument, value, context))))
            else:
                result[argument.name] = value

        try:
            values = await asyncio.gather(*(task for _, task in tasks))
        except BaseException:
            for _, task in tasks:
                task.add_done_callback(_discard)
            raise

        for (name, _), value in zip(tasks, values):
            result[name] = value
        return result

    def __len__(self):
        return len(self._arguments)

    def __iter__(self):
        return iter(self._arguments)

    def __getitem__(self, name):
        for argument in self._arguments:
            if argument.name == name:
                return argument
        raise KeyError(name)

    def __repr__(self):
        return f"usage(arguments={self._arguments!r}, minimum={self._minimum!r})"


__all__ = (
    "Usage",
    "Call",
    "tokenize",
)
