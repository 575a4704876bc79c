from __future__ import annotations

import unittest

from book_segmenter.core.config import SegmentationConfig
from book_segmenter.core.headings import ElementPlacer, InsertableElement
from book_segmenter.core.pages import (
    accumulate_pages,
    build_page_content,
    build_pages,
    force_split_oversized,
    presplit_groups,
    should_break_page,
)
from book_segmenter.core.regions import group_into_regions, make_group, should_group_together
from book_segmenter.core.types import AnnotatedSentence, RegionKind


def _s(text, offset=0, **kwargs) -> AnnotatedSentence:
    return AnnotatedSentence(
        text=text,
        source_offset=offset,
        char_count=len(text),
        is_complete=text.rstrip().endswith((".", "!", "?")),
        **kwargs,
    )


PROSE = "Dies ist ein ganz gewöhnlicher Satz in einem Roman, nicht mehr und nicht weniger. "


class RegionGrouperTests(unittest.TestCase):
    def test_prose_paragraphs_are_separate_groups(self):
        sentences = [
            _s(PROSE, 0, starts_new_paragraph=True),
            _s(PROSE, 90),
            _s(PROSE, 200, starts_new_paragraph=True),
        ]
        groups = group_into_regions(sentences)
        self.assertEqual([len(g.sentences) for g in groups], [1, 1, 1])
        self.assertTrue(all(g.is_splittable for g in groups))

    def test_poem_lines_stay_together(self):
        sentences = [
            _s("Rosen sind rot,  \n", 0, is_poem=True, in_region=RegionKind.POEM, starts_new_paragraph=True),
            _s("Veilchen sind blau,  \n", 18, is_poem=True, in_region=RegionKind.POEM),
            _s("Zucker ist süß.\n", 40, is_poem=False),
        ]
        groups = group_into_regions(sentences)

        self.assertEqual(len(groups), 1)
        self.assertFalse(groups[0].is_splittable)
        self.assertEqual(groups[0].char_count, sum(s.char_count for s in sentences))

    def test_speech_intro_survives_paragraph_break(self):
        intro = _s("Er sagte Folgendes:\n", 0, in_region=RegionKind.SPEECH_INTRO, starts_new_paragraph=True)
        quote = _s(PROSE, 22, starts_new_paragraph=True)
        self.assertTrue(should_group_together(intro, quote))
        self.assertFalse(make_group([intro, quote]).is_splittable)

    def test_multiline_quote_grouped_with_opening_line(self):
        opening = _s("„Das ist der Anfang eines langen Zitats, das weitergeht,\n", 0, starts_new_paragraph=True)
        inside = _s("und hier endet es nach langer Zeit in diesem Roman.“\n", 57,
                    quote_depth=1, in_region=RegionKind.MULTILINE_QUOTE)
        self.assertTrue(should_group_together(opening, inside))

    def test_colon_followed_by_quote(self):
        current = _s("Und dann, nach einer sehr langen Pause, sagte sie zu ihm:\n", 0)
        nxt = _s(PROSE, 60, quote_depth=1)
        self.assertTrue(should_group_together(current, nxt))


class PageAccumulatorTests(unittest.TestCase):
    def setUp(self):
        self.config = SegmentationConfig(
            target_page_size_chars=200, max_page_size_chars=300, min_content_size_chars=10
        )

    def test_break_decisions(self):
        splittable = make_group([_s(PROSE)])
        verse = make_group([_s("Rosen sind rot,  \n", is_poem=True)])

        self.assertFalse(should_break_page(0, splittable, self.config))
        self.assertFalse(should_break_page(150, splittable, self.config))
        self.assertTrue(should_break_page(200, splittable, self.config))
        # non-splittable next group is pulled in while under 1.5 × max
        self.assertFalse(should_break_page(250, verse, self.config))
        self.assertTrue(should_break_page(440, verse, self.config))
        self.assertFalse(should_break_page(250, None, self.config))

    def test_presplit_only_at_sentence_boundaries(self):
        group = make_group([_s(PROSE, i * 90) for i in range(6)])
        parts = presplit_groups([group], self.config.target_page_size_chars)

        self.assertGreater(len(parts), 1)
        self.assertEqual(sum(len(p.sentences) for p in parts), 6)
        for part in parts:
            self.assertLessEqual(part.char_count, self.config.target_page_size_chars)

    def test_pages_respect_overflow_limit(self):
        groups = [make_group([_s(PROSE, i * 90, starts_new_paragraph=True)]) for i in range(20)]
        pages = accumulate_pages(groups, self.config)

        self.assertEqual(sum(len(p) for p in pages), 20)
        for page in pages:
            self.assertLessEqual(sum(g.char_count for g in page), self.config.overflow_limit_chars)

    def test_oversized_verse_group_is_force_split(self):
        line = "Rosen sind rot, Veilchen blau,  \n"
        verse = make_group([_s(line, i * len(line), is_poem=True) for i in range(30)])
        self.assertFalse(verse.is_splittable)
        self.assertGreater(verse.char_count, self.config.overflow_limit_chars)

        parts = force_split_oversized([verse], self.config)
        self.assertEqual(sum(len(p.sentences) for p in parts), 30)
        for part in parts:
            self.assertLessEqual(part.char_count, self.config.max_page_size_chars)

        pages = accumulate_pages([verse], self.config)
        self.assertGreater(len(pages), 1)
        for page in pages:
            self.assertLessEqual(sum(g.char_count for g in page), self.config.overflow_limit_chars)

    def test_tolerated_verse_group_stays_whole(self):
        line = "Rosen sind rot, Veilchen blau,  \n"
        verse = make_group([_s(line, i * len(line), is_poem=True) for i in range(12)])
        self.assertEqual(force_split_oversized([verse], self.config), [verse])

    def test_page_content_inserts_headings_and_paragraphs(self):
        placer = ElementPlacer(
            [InsertableElement("heading", "# Kapitel", 0), InsertableElement("hr", "---", 50)]
        )
        groups = [
            make_group([_s("Erster Satz. ", 10, starts_new_paragraph=True), _s("Zweiter Satz.\n", 23)]),
            make_group([_s("Nach der Linie.", 60, starts_new_paragraph=True)]),
        ]
        content = build_page_content(groups, placer)
        self.assertEqual(content, "# Kapitel\nErster Satz. Zweiter Satz.\n\n---\nNach der Linie.")

    def test_trailing_elements_and_reindexing(self):
        placer = ElementPlacer([InsertableElement("heading", "# Anhang", 500)])
        groups = [make_group([_s(PROSE, 0, starts_new_paragraph=True)])]
        pages = build_pages(groups, self.config, placer)

        self.assertEqual(len(pages), 1)
        self.assertEqual(pages[0].page_index, 0)
        self.assertTrue(pages[0].content.endswith("\n\n# Anhang"))
        self.assertEqual(pages[0].char_count, len(pages[0].content))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
