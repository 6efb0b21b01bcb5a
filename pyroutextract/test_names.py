# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from unittest import TestCase

from .names import EMPTY_STRING_REF, StringRef, StringTable


class TestStringTable(TestCase):
    def test_intern(self) -> None:
        t = StringTable()
        main = t.intern("Main Street")
        market = t.intern("Marszałkowska")
        self.assertEqual(main, StringRef(0, 11))
        self.assertEqual(market, StringRef(11, 14))

        # Offsets don't change as more strings are added
        self.assertEqual(t.intern("Main Street"), main)
        t.intern("Broadway")
        self.assertEqual(t.intern("Marszałkowska"), market)

        self.assertEqual(len(t), 3)
        self.assertEqual(t.get(market), "Marszałkowska")
        self.assertListEqual(list(t), ["Main Street", "Marszałkowska", "Broadway"])
        self.assertEqual(bytes(t.blob), "Main StreetMarszałkowskaBroadway".encode("utf-8"))

    def test_empty_string(self) -> None:
        t = StringTable()
        self.assertEqual(t.intern(""), EMPTY_STRING_REF)
        self.assertEqual(len(t), 0)
        self.assertEqual(t.get(EMPTY_STRING_REF), "")

    def test_from_blob(self) -> None:
        t = StringTable()
        t.intern("foo")
        t.intern("bar")

        loaded = StringTable.from_blob(bytes(t.blob), t.refs)
        self.assertListEqual(list(loaded), ["foo", "bar"])
        self.assertEqual(loaded.intern("bar"), StringRef(3, 3))
        self.assertEqual(loaded.intern("baz"), StringRef(6, 3))
