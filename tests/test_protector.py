from __future__ import annotations

import unittest

from book_segmenter.core.language import ENGLISH
from book_segmenter.core.patterns import PLACEHOLDER_CHAR
from book_segmenter.core.protector import ProtectedText, protect_markdown, restore_markdown


def _originals(text, language=None):
    if language is None:
        _, items = protect_markdown(text)
    else:
        _, items = protect_markdown(text, language)
    return [item.original for item in items]


class AbbreviationProtectionTests(unittest.TestCase):
    def test_single_abbreviations(self):
        cases = {
            "Er hat Wünsche, z.B. zu lesen.": "z.B.",
            "Er hat Wünsche, z. B. zu lesen.": "z. B.",
            "Das ist wichtig, d.h. man muss aufpassen.": "d.h.",
            "Er spricht u.a. Deutsch und Englisch.": "u.a.",
            "Äpfel, Birnen, Bananen usw. sind Obst.": "usw.",
            "Rot bzw. blau sind Farben.": "bzw.",
            "Das kostet ca. 50 Euro.": "ca.",
        }
        for text, expected in cases.items():
            with self.subTest(text=text):
                safe, items = protect_markdown(text)
                self.assertEqual([i.original for i in items], [expected])
                self.assertNotIn(expected, safe)

    def test_several_abbreviations_in_order(self):
        self.assertEqual(_originals("Siehe s.o. für Details und s.u. für Beispiele."), ["s.o.", "s.u."])
        self.assertEqual(
            _originals("Nr. 5 wurde von Dr. Müller und Prof. Schmidt verfasst."),
            ["Nr.", "Dr.", "Prof."],
        )
        self.assertEqual(_originals("Das Projekt kostet 5 Mio. bzw. 2 Mrd. Euro."), ["Mio.", "bzw.", "Mrd."])
        self.assertEqual(
            _originals("Außerdem hat er zahlreiche Wünsche, z. B. zu lesen, d.h. Bücher usw."),
            ["z. B.", "d.h.", "usw."],
        )

    def test_language_specific_list(self):
        self.assertEqual(_originals("Rot bzw. blau, e.g. grün.", ENGLISH), ["e.g."])

    def test_abbreviation_inside_word_is_not_protected(self):
        self.assertEqual(_originals("Die Farbe von Africa."), [])


class MarkdownProtectionTests(unittest.TestCase):
    def test_url_with_query(self):
        text = "Check https://www.youtube.com/watch?v=YYFOKZrvO-w&index=2 for video."
        safe, items = protect_markdown(text)

        self.assertNotIn("?", safe)
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].original, "https://www.youtube.com/watch?v=YYFOKZrvO-w&index=2")
        self.assertTrue(items[0].placeholder.startswith(PLACEHOLDER_CHAR + "URL"))

    def test_multiple_urls(self):
        self.assertEqual(
            _originals("Visit https://a.com?x=1 and https://b.com?y=2 today."),
            ["https://a.com?x=1", "https://b.com?y=2"],
        )

    def test_url_with_balanced_parentheses(self):
        self.assertEqual(
            _originals("See https://en.wikipedia.org/wiki/Thing_(disambiguation) for more."),
            ["https://en.wikipedia.org/wiki/Thing_(disambiguation)"],
        )

    def test_horizontal_rule_and_wikilinks(self):
        self.assertEqual(_originals("Some text\n---\nMore text"), ["---"])
        self.assertEqual(_originals("See [[Page Name|display]] for details."), ["[[Page Name|display]]"])
        self.assertEqual(len(_originals("Check [[A]] and [[B]] and [[C]].")), 3)

    def test_markdown_link_wins_over_inner_url(self):
        originals = _originals("Click [here](https://example.com?foo=bar) now.")
        self.assertEqual(originals, ["[here](https://example.com?foo=bar)"])

    def test_fenced_code_block(self):
        originals = _originals("Some text\n```\ncode with ? and !\n```\nMore text.")
        self.assertEqual(len(originals), 1)
        self.assertIn("```", originals[0])

    def test_inline_code_and_plain_text_untouched(self):
        safe, _ = protect_markdown("Use `code?with` here.")
        self.assertIn("`code?with`", safe)

        text = "This is plain text. Nothing special here!"
        safe, items = protect_markdown(text)
        self.assertEqual(safe, text)
        self.assertEqual(items, [])

    def test_counter_is_strictly_increasing(self):
        _, items = protect_markdown("[[A]] https://x.org [[B]]\n---\n")
        self.assertEqual(
            [i.placeholder.strip(PLACEHOLDER_CHAR) for i in items],
            ["WL0", "URL1", "WL2", "HR3"],
        )


class RoundTripTests(unittest.TestCase):
    CASES = [
        "Check https://www.youtube.com/watch?v=XYZ&index=2 for video.",
        "Visit https://a.com?x=1 and [[Page]] today.",
        "Text\n---\nMore",
        "Simple https://example.com/page?query=value&other=123 URL",
        "Multiple: [[Link1]] and [[Link2|alias]]",
        "Code:\n```js\nif (x? y : z) {}\n```\nEnd.",
        "---\n# Heading\nContent",
        "Complex: https://a.com?x=1 with [[Page]] and [md](https://b.com)",
        "Außerdem hat er zahlreiche Wünsche, z. B. zu lesen.",
        "",
    ]

    def test_restore_inverts_protect(self):
        for original in self.CASES:
            with self.subTest(original=original):
                safe, items = protect_markdown(original)
                self.assertEqual(restore_markdown(safe, items), original)

    def test_restore_without_items(self):
        self.assertEqual(restore_markdown("Plain text.", []), "Plain text.")

    def test_offset_map_points_after_placeholder(self):
        source = "Siehe [[Seite]] und weiter."
        protected = ProtectedText(source)
        after = protected.text.index(" und")
        self.assertEqual(protected.to_source(after), source.index(" und"))
        self.assertEqual(protected.restore(protected.text), source)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
