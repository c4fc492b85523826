r"""
Argot argument specifications.

Overview
- Argument: one declared parameter of a command usage. It names the key of the
  resolved value, the resolver type(s) used to coerce the raw token, whether the
  argument may be omitted, and what to substitute when it is.

- Introspection & representation
  • ArgumentType metaclass provides stable __repr__/__rich_repr__ and exposes the
    fields declared in __introspectable__ as read-only properties.

Metadata (sanitized on construction)
- name: str, required and non-empty (MissingNameError otherwise).
- display_name: Unset | str, label used in error messages (defaults to name).
- type / types: one resolver type name or an ordered sequence of them; both at
  once are rejected. When neither is given the argument resolves as "string".
- optional: bool.
- default: any value, including None; Unset means “no default”.
- choices: Iterable[str] consumed by the "choice" resolver (duplicates rejected).
- descr: Unset | str, short description for help renderers.

Quick example:
    >>> from argot.arguments import Argument
    >>> Argument("amount", type="int")
    argument(name='amount', types=('int',), optional=False, default=Unset)
    >>> Argument.from_mapping({"name": "reason", "optional": True, "displayName": "Reason"}).render()
    '[Reason]'

Public API
- Classes: Argument
"""
import builtins
import functools
import operator
import re
from collections.abc import Iterable, Mapping

from .faults import FaultCode, MissingNameError, getdoc
from .utils import *


class ArgumentType(type):
    """
    Metaclass that turns specs into introspectable, read-only descriptors.

    Responsibilities
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics.
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__. A property the class defines itself
      under one of those names is kept as-is.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ()) if name not in namespace
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
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_name(cls, metadata, /):
    """
    Internal: validate 'name' and 'display_name'.

    - name must be present: Unset, None and blank strings raise MissingNameError.
    - display_name defaults to name; when provided it must be a non-empty string.
    """
    if (name := metadata["name"]) is Unset or name is None or (isinstance(name, str) and not name.strip()):
        raise MissingNameError(
            "argument specified in usage has no name",
            title="missing name",
            code=FaultCode.MISSING_NAME,
            hint="give every argument of the usage a unique name",
            docs=getdoc(FaultCode.MISSING_NAME),
        )
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    metadata["name"] = name = name.strip()

    if not isinstance(display_name := metadata["display_name"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'display_name' must be a string")
    elif isinstance(display_name, str) and not (display_name := display_name.strip()):
        raise ValueError(f"{cls.__typename__} 'display_name' cannot be empty")
    metadata["display_name"] = coalesce(display_name, name)


def _sanitize_types(cls, metadata, /):
    """
    Internal: fold 'type' and 'types' into a non-empty tuple of type names.

    - 'type' and 'types' are mutually exclusive.
    - a bare string given as 'types' is accepted as a single type.
    - neither given → ("string",).
    - names must be non-empty strings without duplicates.
    """
    type, types = metadata.pop("type"), metadata["types"]
    if type is not Unset and types is not Unset:
        raise TypeError(f"{cls.__typename__} cannot have both 'type' and 'types'")

    types = coalesce(types, ("string",) if type is Unset else (type,))
    if isinstance(types, str):
        types = (types,)
    elif not isinstance(types, Iterable):
        raise TypeError(f"{cls.__typename__} 'types' must be an iterable of strings")

    sanitized = []
    for type in types:
        if not isinstance(type, str):
            raise TypeError(f"{cls.__typename__} types must be strings")
        elif not (type := type.strip()):
            raise ValueError(f"{cls.__typename__} types cannot be empty-strings")
        elif type in sanitized:
            raise ValueError(f"{cls.__typename__} 'types' cannot contain duplicates")
        sanitized.append(type)

    if not sanitized:
        raise ValueError(f"{cls.__typename__} must specify at least one type")
    metadata["types"] = tuple(sanitized)


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate 'choices' and 'descr'.
    """
    if not isinstance(choices := metadata["choices"], Iterable) or isinstance(choices, str):
        raise TypeError(f"{cls.__typename__} 'choices' must be an iterable of strings")
    sanitized = []
    for choice in choices:
        if not isinstance(choice, str):
            raise TypeError(f"{cls.__typename__} choices must be strings")
        if choice in sanitized:
            raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
        sanitized.append(choice)
    metadata["choices"] = tuple(sanitized)

    if not isinstance(descr := metadata["descr"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)


class Argument(metaclass=ArgumentType):
    """
    One declared parameter of a command usage.

    Arguments are immutable once built: every field is exposed through a
    read-only property. Two arguments compare equal when all their fields do,
    which makes loading the same schema twice produce equal specs.
    """

    __introspectable__ = (
        "name",
        "display_name",
        "types",
        "optional",
        "default",
        "choices",
        "descr",
    )

    __displayable__ = (
        "name",
        "types",
        "optional",
        "default",
    )

    # Returned exactly as declared, never frozen.
    default = property(operator.attrgetter("_default"))

    def __new__(
            cls,
            name=Unset,
            /,
            type=Unset,
            types=Unset,
            optional=False,
            default=Unset,
            *,
            display_name=Unset,
            choices=(),
            descr=Unset,
    ):
        """
        Construct an Argument spec with the provided metadata.

        Parameters
        - name: str
          Key of the resolved value. Required.
        - type: Unset | str
          Single resolver type name (shorthand for types=(type,)).
        - types: Unset | str | Iterable[str]
          Ordered resolver type names; tried in order, first success wins.
        - optional: bool
          Whether the argument may be omitted.
        - default: Any
          Value used when an optional argument is omitted. Unset means the
          key is left out of the result instead.
        - display_name: Unset | str
          Label used in error messages; defaults to name.
        - choices: Iterable[str]
          Accepted values for the "choice" resolver.
        - descr: Unset | str
          Short description. If Unset, becomes None.

        Raises
        - MissingNameError: when name is missing or blank.
        - TypeError / ValueError: on malformed metadata.
        """
        metadata = {
            "name": name,
            "display_name": display_name,
            "type": type,
            "types": types,
            "optional": bool(optional),
            "default": default,
            "choices": choices,
            "descr": descr,
        }
        _sanitize_name(cls, metadata)
        _sanitize_types(cls, metadata)
        _sanitize_metadata(cls, metadata)

        self = super().__new__(cls)
        # Mirror sanitized metadata into private fields; read-only properties expose them.
        for name, object in metadata.items():
            builtins.setattr(self, "_" + name, object)
        return self

    @classmethod
    def from_mapping(cls, mapping, /):
        """
        Build an Argument from a plain mapping such as {"name": "user", "type": "member"}.

        Both "display_name" and the camel-case "displayName" keys are accepted.
        Unknown keys are rejected so typos do not go unnoticed.
        """
        if not isinstance(mapping, Mapping):
            raise TypeError(f"{cls.__typename__} mapping must be a mapping")
        options = dict(mapping)
        if "displayName" in options:
            if "display_name" in options:
                raise TypeError(f"{cls.__typename__} cannot have both 'displayName' and 'display_name'")
            options["display_name"] = options.pop("displayName")
        if unknown := options.keys() - set(cls.__introspectable__) - {"type"}:
            raise TypeError(f"{cls.__typename__} got unexpected keys: {", ".join(sorted(unknown))}")
        return cls(options.pop("name", Unset), **options)

    def render(self):
        """
        Usage label: `<name>` when required, `[display_name]` when optional.
        """
        return f"[{self._display_name}]" if self._optional else f"<{self._name}>"

    def __eq__(self, other):
        if not isinstance(other, Argument):
            return NotImplemented
        return all(getattr(self, "_" + name) == getattr(other, "_" + name) for name in type(self).__introspectable__)

    def __hash__(self):
        return hash((self._name, self._types))


__all__ = (
    "Argument",
)

# Remove the internal metaclass from the module namespace; not part of the public API.
del ArgumentType
