"""
Descriptors module behavioral tests (Flag, Descriptor).

Scope
- Validate construction, defaults and normalization.
- Validate identifier and name rules (prefix, whitespace, reserved "h").
- Validate immutability and value semantics.

Conventions
- Test method names follow CamelCase per project convention.
- Never pass explicit None for optional fields; omit instead.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from rich.text import Text

from cliargs import Descriptor, Flag


class TestFlag(TestCase):
    """Behavioral tests for Flag descriptors."""

    def testFlagDefaults(self):
        f = Flag("n")
        self.assertEqual(f.identifier, "n")
        self.assertIsNone(f.descr)
        self.assertFalse(f.required)

    def testFlagDescrIsTrimmed(self):
        self.assertEqual(Flag("n", "  Name to greet ").descr, "Name to greet")

    def testFlagRequired(self):
        self.assertTrue(Flag("n", "Name", required=True).required)

    def testFlagIdentifierMustBeString(self):
        with self.assertRaises(TypeError):
            Flag(1)

    def testFlagIdentifierCannotBeEmpty(self):
        with self.assertRaises(ValueError):
            Flag("")

    def testFlagIdentifierWithoutPrefix(self):
        with self.assertRaises(ValueError):
            Flag("-n")

    def testFlagIdentifierWithoutWhitespace(self):
        with self.assertRaises(ValueError):
            Flag("dry run")

    def testFlagIdentifierHelpIsReserved(self):
        with self.assertRaises(ValueError):
            Flag("h")

    def testFlagDescrEmptyRejected(self):
        with self.assertRaises(ValueError):
            Flag("n", "   ")

    def testFlagDescrExplicitNoneRejected(self):
        with self.assertRaises(TypeError):
            Flag("n", None)

    def testFlagRequiredMustBeBoolean(self):
        with self.assertRaises(TypeError):
            Flag("n", required="yes")

    def testFlagIsReadOnly(self):
        f = Flag("n")
        with self.assertRaises(AttributeError):
            f.identifier = "m"
        with self.assertRaises(AttributeError):
            f._identifier = "m"

    def testFlagValueSemantics(self):
        self.assertEqual(Flag("n", "Name"), Flag("n", "Name"))
        self.assertNotEqual(Flag("n", "Name"), Flag("n", "Name", required=True))
        self.assertEqual(len({Flag("n", "Name"), Flag("n", "Name")}), 1)

    def testFlagWithTextDescrIsHashable(self):
        self.assertEqual(hash(Flag("a", Text("x"))), hash(Flag("a", Text("x"))))
        self.assertEqual(len({Descriptor("greet", Text("Greets"), flags=[Flag("a", Text("x"))])}), 1)

    def testFlagRepr(self):
        self.assertEqual(repr(Flag("n", "Name")), "flag(identifier='n', descr='Name', required=False)")


class TestDescriptor(TestCase):
    """Behavioral tests for command Descriptors."""

    def setUp(self):
        self.flags = [Flag("n", "Name", required=True), Flag("loud", "Shout")]

    def testDescriptorFields(self):
        d = Descriptor("greet", "Greets someone", flags=self.flags)
        self.assertEqual(d.name, "greet")
        self.assertEqual(d.descr, "Greets someone")
        self.assertEqual(d.flags, tuple(self.flags))
        self.assertIsInstance(d.flags, tuple)

    def testDescriptorDefaults(self):
        d = Descriptor("quit")
        self.assertIsNone(d.descr)
        self.assertEqual(d.flags, ())

    def testDescriptorKeepsFlagOrder(self):
        d = Descriptor("greet", "Greets", self.flags[::-1])
        self.assertEqual([f.identifier for f in d.flags], ["loud", "n"])

    def testDescriptorDoesNotShareCallerList(self):
        d = Descriptor("greet", "Greets", flags=self.flags)
        self.flags.append(Flag("extra"))
        self.assertEqual(len(d.flags), 2)

    def testDescriptorNameRules(self):
        with self.assertRaises(TypeError):
            Descriptor(3)
        with self.assertRaises(ValueError):
            Descriptor("")
        with self.assertRaises(ValueError):
            Descriptor("two words")

    def testDescriptorDuplicateFlagsRejected(self):
        with self.assertRaises(ValueError):
            Descriptor("greet", "Greets", flags=[Flag("n"), Flag("n", "Again")])

    def testDescriptorFlagsMustBeFlags(self):
        with self.assertRaises(TypeError):
            Descriptor("greet", "Greets", flags=["n"])
        with self.assertRaises(TypeError):
            Descriptor("greet", "Greets", flags="n")
        with self.assertRaises(TypeError):
            Descriptor("greet", "Greets", flags=Flag("n"))
        with self.assertRaises(TypeError):
            Descriptor("greet", "Greets", flags=5)

    def testDescriptorLookup(self):
        d = Descriptor("greet", "Greets", flags=self.flags)
        self.assertIs(d.lookup("loud"), self.flags[1])
        self.assertIsNone(d.lookup("missing"))

    def testDescriptorRequired(self):
        d = Descriptor("greet", "Greets", flags=self.flags)
        self.assertEqual(d.required, ("n",))

    def testDescriptorIsReadOnly(self):
        d = Descriptor("greet")
        with self.assertRaises(AttributeError):
            d.name = "other"

    def testDescriptorValueSemantics(self):
        self.assertEqual(
            Descriptor("greet", "Greets", flags=self.flags),
            Descriptor("greet", "Greets", flags=list(self.flags)),
        )
        self.assertNotEqual(Descriptor("greet", "Greets"), Descriptor("greet", "Hello"))


if __name__ == "__main__":
    unittest.main()
