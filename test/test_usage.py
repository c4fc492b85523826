"""
Usage module behavioral tests (loading, arity, quoting, defaults, fan-out).

Scope
- Validate schema loading: normalization, idempotence, faults.
- Validate the token walk: optional slots, defaults, quoted groups.
- Validate user-facing faults and the rendered usage line.
- Validate concurrent coercion and context forwarding.

Conventions
- Test method names follow CamelCase per project convention.
- Coroutines are exercised through IsolatedAsyncioTestCase.
"""
import asyncio
import unittest
from unittest import IsolatedAsyncioTestCase, TestCase

from argot import (
    Argument,
    Call,
    FaultCode,
    Guild,
    InsufficientArgumentsError,
    InvalidArgumentError,
    MissingNameError,
    Registry,
    UnknownResolverTypeError,
    UnterminatedQuoteError,
    Usage,
    resolver,
    tokenize,
)


def _registry():
    registry = Registry.builtin()

    @registry.register
    @resolver("echo")
    async def echo(raw, argument, context):
        return raw

    return registry


class TestLoad(TestCase):
    """Behavioral tests for Usage.load."""

    def setUp(self):
        self.usage = Usage(_registry())

    def testSingleSpecAccepted(self):
        self.usage.load({"name": "user"})
        self.assertEqual(len(self.usage), 1)
        self.assertEqual(self.usage.arguments[0].types, ("string",))

    def testMinimumCountsRequired(self):
        self.usage.load([
            {"name": "a"},
            {"name": "b", "optional": True},
            Argument("c"),
        ])
        self.assertEqual(self.usage.minimum, 2)
        self.assertEqual([argument.name for argument in self.usage.required], ["a", "c"])
        self.assertEqual([argument.name for argument in self.usage.optional], ["b"])

    def testLoadIsIdempotent(self):
        schema = [{"name": "a", "type": "int"}, {"name": "b", "optional": True, "default": "x"}]
        first = self.usage.load(schema).arguments
        minimum = self.usage.minimum
        second = self.usage.load(schema).arguments
        self.assertEqual(first, second)
        self.assertEqual(minimum, self.usage.minimum)
        self.assertEqual(second[1].display_name, "b")

    def testMissingNameRaises(self):
        with self.assertRaises(MissingNameError):
            self.usage.load([{"name": "a"}, {"type": "int"}])

    def testDuplicateNamesRejected(self):
        with self.assertRaises(ValueError):
            self.usage.load([{"name": "a"}, {"name": "a", "optional": True}])

    def testMalformedSchemaRejected(self):
        with self.assertRaises(TypeError):
            self.usage.load("a")
        with self.assertRaises(TypeError):
            self.usage.load([42])

    def testRegistryRequired(self):
        with self.assertRaises(TypeError):
            Usage(object())

    def testLookupByName(self):
        self.usage.load([{"name": "a"}])
        self.assertEqual(self.usage["a"].name, "a")
        with self.assertRaises(KeyError):
            self.usage["b"]

    def testRender(self):
        self.usage.load([{"name": "user"}, {"name": "reason", "optional": True, "displayName": "Reason"}])
        self.assertEqual(self.usage.render(Call("!", "ban")), "!ban <user> [Reason]")
        self.assertEqual(self.usage.render({"prefix": "?", "command": "ban"}), "?ban <user> [Reason]")

    def testRenderWithoutArguments(self):
        self.assertEqual(self.usage.render(Call("!", "ping")), "!ping")


class TestTokenize(TestCase):
    """Behavioral tests for tokenize and Call."""

    def testStringSplitsOnWhitespace(self):
        self.assertEqual(tokenize('say  "hello   world"'), ["say", '"hello', 'world"'])

    def testIterablePreserved(self):
        self.assertEqual(tokenize(("a", "b")), ["a", "b"])

    def testNonStringRejected(self):
        with self.assertRaises(TypeError):
            tokenize(["a", 1])
        with self.assertRaises(TypeError):
            tokenize(42)

    def testCallFromGuild(self):
        self.assertEqual(Call.of(Guild("1", prefix="$"), "ban"), Call("$", "ban"))

    def testCallDefaults(self):
        self.assertEqual(Call(), Call("", ""))


class TestResolve(IsolatedAsyncioTestCase):
    """Behavioral tests for Usage.resolve."""

    def setUp(self):
        self.registry = _registry()
        self.call = Call("!", "cmd")

    def usage(self, *schema):
        return Usage(self.registry, list(schema))

    async def testEmptySchemaShortCircuits(self):
        usage = Usage(Registry(), [])
        self.assertEqual(await usage.resolve(None, ["a", "b"], self.call), {})

    async def testRequiredAndDefaultedOptional(self):
        usage = self.usage({"name": "a", "type": "int"}, {"name": "b", "optional": True, "default": "x"})
        self.assertEqual(await usage.resolve(None, ["5"], self.call), {"a": 5, "b": "x"})

    async def testOptionalConsumesSlot(self):
        usage = self.usage({"name": "a", "type": "int"}, {"name": "b", "optional": True, "default": "x"})
        self.assertEqual(await usage.resolve(None, ["5", "y"], self.call), {"a": 5, "b": "y"})

    async def testOptionalBeforeRequired(self):
        usage = self.usage({"name": "a", "optional": True, "default": "d"}, {"name": "b"})
        self.assertEqual(await usage.resolve(None, ["only"], self.call), {"a": "d", "b": "only"})
        self.assertEqual(await usage.resolve(None, ["one", "two"], self.call), {"a": "one", "b": "two"})

    async def testSkippedOptionalWithoutDefaultOmitted(self):
        usage = self.usage({"name": "a"}, {"name": "b", "optional": True})
        self.assertEqual(await usage.resolve(None, ["x"], self.call), {"a": "x"})

    async def testFalsyDefaultApplied(self):
        usage = self.usage({"name": "a", "optional": True, "default": 0})
        self.assertEqual(await usage.resolve(None, [], self.call), {"a": 0})

    async def testContainerDefaultPreserved(self):
        defaults = {"tags": ["a", "b"], "limits": {"max": 3}, "payload": b"hi"}
        usage = self.usage(*({"name": name, "optional": True, "default": value} for name, value in defaults.items()))
        result = await usage.resolve(None, [], self.call)
        self.assertEqual(result, defaults)
        for name, value in defaults.items():
            self.assertIs(type(result[name]), type(value))

    async def testRequiredNeverTakesDefault(self):
        usage = self.usage({"name": "a", "default": "ignored"})
        self.assertEqual(await usage.resolve(None, ["given"], self.call), {"a": "given"})
        with self.assertRaises(InsufficientArgumentsError):
            await usage.resolve(None, [], self.call)

    async def testEchoRoundTrip(self):
        usage = self.usage({"name": "a", "types": ["echo"]})
        self.assertEqual(await usage.resolve(None, ['"quoted"'], self.call), {"a": "quoted"})

    async def testResultFollowsDeclaredOrder(self):
        usage = self.usage(
            {"name": "c", "optional": True, "default": 1},
            {"name": "a"},
            {"name": "b", "optional": True, "default": 2},
        )
        self.assertEqual(list(await usage.resolve(None, ["x"], self.call)), ["c", "a", "b"])

    async def testInsufficientArguments(self):
        usage = self.usage({"name": "a"}, {"name": "b"}, {"name": "c", "optional": True, "displayName": "Cee"})
        with self.assertRaises(InsufficientArgumentsError) as context:
            await usage.resolve(None, ["1"], self.call)
        fault = context.exception
        self.assertEqual(fault.options["expected"], 2)
        self.assertEqual(fault.options["seen"], 1)
        self.assertEqual(fault.options["usage"], "!cmd <a> <b> [Cee]")
        self.assertIs(fault.options["code"], FaultCode.INSUFFICIENT_ARGUMENTS)
        self.assertIn("`!cmd <a> <b> [Cee]`", str(fault))
        self.assertTrue(str(fault).startswith("Insufficient arguments - Expected at least **2**, saw **1**."))
        self.assertIn("**Correct usage**: `!cmd <a> <b> [Cee]`", str(fault))

    async def testQuotedGroupJoined(self):
        usage = self.usage({"name": "verb"}, {"name": "text"})
        self.assertEqual(
            await usage.resolve(None, ["say", '"hello', 'world"'], self.call),
            {"verb": "say", "text": "hello world"}
        )

    async def testQuotedGroupFromString(self):
        usage = self.usage({"name": "text"}, {"name": "rest", "optional": True})
        self.assertEqual(
            await usage.resolve(None, '"a b c" tail', self.call),
            {"text": "a b c", "rest": "tail"}
        )

    async def testQuotedEmptyGroup(self):
        usage = self.usage({"name": "verb"}, {"name": "text"})
        self.assertEqual(await usage.resolve(None, ["say", '""'], self.call), {"verb": "say", "text": ""})

    async def testQuotedGroupStripsInnerQuotes(self):
        usage = self.usage({"name": "text", "type": "echo"})
        self.assertEqual(await usage.resolve(None, ['"a"b', 'c"'], self.call), {"text": "ab c"})

    async def testUnterminatedQuote(self):
        usage = self.usage({"name": "text"})
        with self.assertRaises(UnterminatedQuoteError) as context:
            await usage.resolve(None, ['"open'], self.call)
        self.assertEqual(context.exception.options["index"], 0)
        self.assertEqual(context.exception.options["token"], '"open')
        self.assertIn("first position", str(context.exception))

    async def testQuotedGroupSwallowsOptionalSlot(self):
        usage = self.usage({"name": "a"}, {"name": "b", "optional": True, "default": "d"})
        self.assertEqual(await usage.resolve(None, ['"x', 'y"'], self.call), {"a": "x y", "b": "d"})

    async def testQuotedGroupSwallowsRequired(self):
        usage = self.usage({"name": "a"}, {"name": "b"})
        with self.assertRaises(InsufficientArgumentsError):
            await usage.resolve(None, ['"x', 'y"'], self.call)

    async def testUnknownResolverType(self):
        usage = self.usage({"name": "a", "types": ["nope"]})
        with self.assertRaises(UnknownResolverTypeError) as context:
            await usage.resolve(None, ["x"], self.call)
        self.assertEqual(context.exception.options["type"], "nope")

    async def testInvalidArgumentSurfaces(self):
        usage = self.usage({"name": "amount", "type": "int", "displayName": "Amount"})
        with self.assertRaises(InvalidArgumentError) as context:
            await usage.resolve(None, ["many"], self.call)
        self.assertIn("**`Amount`**", str(context.exception))

    async def testContextForwarded(self):
        seen = []

        @self.registry.register
        @resolver("spy")
        async def spy(raw, argument, context):
            seen.append(context)
            return raw

        context = object()
        await self.usage({"name": "a", "type": "spy"}, {"name": "b", "type": "spy"}).resolve(context, ["1", "2"])
        self.assertEqual(seen, [context, context])

    async def testCoercionsRunConcurrently(self):
        event = asyncio.Event()

        @self.registry.register
        @resolver("wait")
        async def wait(raw, argument, context):
            await event.wait()
            return raw

        @self.registry.register
        @resolver("release")
        async def release(raw, argument, context):
            event.set()
            return raw

        usage = self.usage({"name": "a", "type": "wait"}, {"name": "b", "type": "release"})
        result = await asyncio.wait_for(usage.resolve(None, ["1", "2"], self.call), 1)
        self.assertEqual(result, {"a": "1", "b": "2"})

    async def testFailureDiscardsOtherResults(self):
        finished = asyncio.Event()

        @self.registry.register
        @resolver("slow")
        async def slow(raw, argument, context):
            await asyncio.sleep(0.01)
            finished.set()
            return raw

        usage = self.usage({"name": "a", "type": "slow"}, {"name": "b", "type": "int"})
        with self.assertRaises(InvalidArgumentError):
            await usage.resolve(None, ["1", "x"], self.call)
        await asyncio.wait_for(finished.wait(), 1)

    async def testUsageIsReusable(self):
        usage = self.usage({"name": "a", "type": "int"})
        self.assertEqual(await usage.resolve(None, ["1"]), {"a": 1})
        self.assertEqual(await usage.resolve(None, ["2"]), {"a": 2})


if __name__ == "__main__":
    unittest.main()
