"""
Argot resolvers: named coercions from raw tokens to typed values.

Overview
- Resolver: a named capability {type, resolve(raw, argument, context)}. The
  resolve callable may be a coroutine function or a plain function; awaitables
  are awaited.
- @resolver(type): build a Resolver from a function, the same way the argument
  decorators bind handlers.
- Registry: an explicit type-name → Resolver table built by the host at startup
  and injected into every Usage. Last registration wins.

Error contract
- A resolver rejects a value by raising any Exception whose message may contain
  the literal "{arg}" placeholder (e.g. "{arg} must be a number"). The registry
  wraps it into an InvalidArgumentError that renders the placeholder with the
  argument display name.
- Faults raised by a resolver itself (UsageException) pass through unchanged.

Quick example:
    >>> registry = Registry.builtin()
    >>> @registry.register
    ... @resolver("upper")
    ... async def upper(raw, argument, context):
    ...     return raw.upper()
"""
import inspect
import math

from .faults import *
from .utils import *


class Resolver:
    """
    Named coercion capability.

    Either bind a callback with the @resolver(type) decorator, or subclass and
    override resolve():

        class Member(Resolver):
            def __init__(self):
                super().__init__("member")

            async def resolve(self, raw, argument, context):
                ...
    """

    type = mirror("type")

    def __init__(self, type, /):
        if not isinstance(type, str):
            raise TypeError("resolver 'type' must be a string")
        elif not (type := type.strip()):
            raise ValueError("resolver 'type' cannot be empty")
        self._type = type
        self._callback = Unset  # Bound by @resolver() later.

    async def resolve(self, raw, argument, context=None):
        """
        Coerce one raw token for the given argument; context is the opaque
        invocation context forwarded by the caller.
        """
        if self._callback is Unset:
            raise NotImplementedError(f"resolver {self._type!r} has no callback bound")
        result = self._callback(raw, argument, context)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self):
        return f"resolver(type={self._type!r})"


def resolver(type, /):
    """
    Decorator/factory for defining a resolver from a function.

    Usage
        @resolver("int")
        async def integer(raw, argument, context):
            return int(raw)

    Behavior
    - Validates that it decorates a callable and enforces single application.
    - Binds the provided function as the Resolver's callback.
    - Returns the configured Resolver instance.
    """
    instance = Resolver(type)

    @rename("resolver")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@resolver() must be applied to a callable")
        if instance._callback is not Unset:  # NOQA: E-501
            raise TypeError("@resolver() must be applied only once")
        instance._callback = callback
        return instance

    return wrapper


class Registry:
    """
    Type-name → resolver table.

    Populated once at startup, read-only afterwards by convention. Registering
    a type twice silently replaces the previous resolver; a host that wants to
    treat collisions as configuration errors can check `type in registry` first.
    """

    def __init__(self, resolvers=(), /):
        self._resolvers = {}
        for object in resolvers:
            self.register(object)

    @classmethod
    def builtin(cls):
        """
        Return a new registry preloaded with the built-in resolvers
        (string, int, float, boolean, choice).
        """
        return cls(BUILTINS)

    def register(self, resolver, /):
        """
        Add a resolver under resolver.type and return it (usable as a decorator).
        """
        if not isinstance(getattr(resolver, "type", None), str) or not callable(getattr(resolver, "resolve", None)):
            raise TypeError("register() argument must provide a 'type' string and a 'resolve' callable")
        self._resolvers[resolver.type] = resolver
        return resolver

    def __contains__(self, type):
        return type in self._resolvers

    def __getitem__(self, type):
        return self._resolvers[type]

    def __iter__(self):
        return iter(self._resolvers)

    def __len__(self):
        return len(self._resolvers)

    def __repr__(self):
        return f"registry(types={tuple(self._resolvers)!r})"

    async def resolve(self, type, raw, argument, context=None):
        """
        Coerce raw with the resolver registered under type.

        Raises
        - UnknownResolverTypeError: no resolver is registered under type.
        - InvalidArgumentError: the resolver rejected the value.
        """
        try:
            resolver = self._resolvers[type]
        except KeyError:
            raise UnknownResolverTypeError(
                "invalid resolver type %r for argument %r" % (type, argument.name),
                title="unknown resolver type",
                code=FaultCode.UNKNOWN_RESOLVER_TYPE,
                type=type,
                argument=argument,
                hint="register a resolver for %r before loading usages that declare it" % type,
                docs=getdoc(FaultCode.UNKNOWN_RESOLVER_TYPE),
            ) from None

        try:
            result = resolver.resolve(raw, argument, context)
            if inspect.isawaitable(result):
                result = await result
        except UsageException:
            raise
        except Exception as exception:
            raise InvalidArgumentError(
                str(exception) or "{arg} is invalid",
                title="invalid argument",
                code=FaultCode.INVALID_ARGUMENT,
                type=type,
                raw=raw,
                argument=argument,
                hint="check the value given for %s" % argument.display_name,
                docs=getdoc(FaultCode.INVALID_ARGUMENT),
                exception=exception,
            ) from exception
        return result

    async def coerce(self, argument, raw, context=None):
        """
        Try the argument's types in declared order and return the first success.

        When every type rejects the value, the error of the first declared type
        is raised, so single-type arguments fail exactly as resolve() does.
        An unregistered type aborts at once.
        """
        failure = None
        for type in argument.types:
            try:
                return await self.resolve(type, raw, argument, context)
            except InvalidArgumentError as exception:
                failure = failure or exception
        raise failure


@resolver("string")
def _string(raw, argument, context):
    return raw


@resolver("int")
def _integer(raw, argument, context):
    try:
        return int(raw, 10)
    except ValueError:
        raise ValueError("{arg} must be a whole number") from None


@resolver("float")
def _number(raw, argument, context):
    try:
        number = float(raw)
    except ValueError:
        raise ValueError("{arg} must be a number") from None
    if not math.isfinite(number):
        raise ValueError("{arg} must be a finite number")
    return number


_BOOLEANS = {
    "true": True, "yes": True, "y": True, "on": True, "1": True,
    "false": False, "no": False, "n": False, "off": False, "0": False,
}


@resolver("boolean")
def _boolean(raw, argument, context):
    try:
        return _BOOLEANS[raw.strip().casefold()]
    except KeyError:
        raise ValueError("{arg} must be yes or no") from None


@resolver("choice")
def _choice(raw, argument, context):
    for choice in argument.choices:
        if choice.casefold() == raw.casefold():
            return choice
    if not argument.choices:
        raise ValueError("{arg} has no choices declared")
    raise ValueError("{arg} must be one of: %s" % ", ".join(argument.choices))


BUILTINS = (_string, _integer, _number, _boolean, _choice)


__all__ = (
    "Resolver",
    "resolver",
    "Registry",
    "BUILTINS",
)
