from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError

from book_segmenter.core.config import BlockMarkerConfig, SegmentationConfig, load_segmenter_config
from book_segmenter.core.io import (
    build_index_basename,
    build_page_basename,
    parse_source_name,
    read_markdown,
    strip_navigation_backlink,
    write_pages,
)
from book_segmenter.core.language import ENGLISH, GERMAN, get_language_config
from book_segmenter.core.types import PageSegment, SegmentationResult

YAML_TEXT = """
language: en
segmentation:
  target_page_size_chars: 1000
  max_page_size_chars: 2000
block_marker:
  max_merged_words: 20
"""


class ConfigTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "segmenter.yaml"
        self.path.write_text(YAML_TEXT, encoding="utf-8")

    def tearDown(self):
        self.tmp.cleanup()

    def test_defaults(self):
        seg = SegmentationConfig()
        self.assertEqual(
            (seg.target_page_size_chars, seg.max_page_size_chars, seg.min_content_size_chars),
            (3000, 6000, 1500),
        )
        self.assertEqual(seg.overflow_limit_chars, 9000)
        marker = BlockMarkerConfig()
        self.assertEqual((marker.short_sentence_words, marker.max_merged_words), (4, 30))
        self.assertIs(marker.language, GERMAN)

    @patch.dict(os.environ, {}, clear=True)
    def test_yaml_sections(self):
        cfg = load_segmenter_config(self.path)

        self.assertEqual(cfg.segmentation.target_page_size_chars, 1000)
        self.assertEqual(cfg.segmentation.max_page_size_chars, 2000)
        self.assertEqual(cfg.segmentation.min_content_size_chars, 1500)
        self.assertEqual(cfg.block_marker.max_merged_words, 20)
        self.assertEqual(cfg.language, ENGLISH)

    @patch.dict(
        os.environ,
        {"SEGMENTER_TARGET_PAGE_SIZE_CHARS": "1500", "SEGMENTER_LANGUAGE": "de", "SEGMENTER_MAX_MERGED_WORDS": "25"},
        clear=True,
    )
    def test_environment_wins_over_yaml(self):
        cfg = load_segmenter_config(self.path)

        self.assertEqual(cfg.segmentation.target_page_size_chars, 1500)
        self.assertEqual(cfg.block_marker.max_merged_words, 25)
        self.assertEqual(cfg.language, GERMAN)

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_file_gives_defaults(self):
        cfg = load_segmenter_config(Path(self.tmp.name) / "nope.yaml")
        self.assertEqual(cfg.segmentation.target_page_size_chars, 3000)

    def test_invalid_values(self):
        with self.assertRaises(ValidationError):
            SegmentationConfig(target_page_size_chars=5000, max_page_size_chars=4000)
        with self.assertRaises(ValidationError):
            SegmentationConfig(target_page_size_chars=0)
        with self.assertRaises(ValidationError):
            BlockMarkerConfig(language="fr")
        with self.assertRaises(ValueError):
            get_language_config("fr")


class SourceNameTests(unittest.TestCase):
    def test_parse(self):
        info = parse_source_name("Aschenputtel-Märchen-Grimm.md")
        self.assertEqual(info.core_name, "Aschenputtel")
        self.assertEqual(info.suffix, ("Märchen", "Grimm"))
        self.assertEqual(parse_source_name("Notiz").suffix, ())

    def test_basenames(self):
        self.assertEqual(build_page_basename(4, "Buch", ("Band1",)), "004-Buch-Band1")
        self.assertEqual(build_index_basename("Buch", ("Band1",)), "__-Buch-Band1")
        self.assertEqual(build_index_basename("Buch"), "__-Buch")

    def test_strip_navigation_backlink(self):
        self.assertEqual(strip_navigation_backlink("[[__-Buch|← Buch]]\n\nText."), "Text.")
        self.assertEqual(strip_navigation_backlink("Text [[__-Buch|← Buch]]"), "Text [[__-Buch|← Buch]]")
        self.assertEqual(strip_navigation_backlink("[[Andere|Link]]\nText."), "[[Andere|Link]]\nText.")


class WritePagesTests(unittest.TestCase):
    def test_pages_and_index(self):
        result = SegmentationResult(
            pages=[
                PageSegment(content="Seite eins.", page_index=0, char_count=11),
                PageSegment(content="Seite zwei.", page_index=1, char_count=11),
            ],
            source_core_name="Buch",
            source_suffix=("Band1",),
        )
        with tempfile.TemporaryDirectory() as tmp:
            written = write_pages(result, tmp)

            self.assertEqual(
                [p.name for p in written], ["000-Buch-Band1.md", "001-Buch-Band1.md", "__-Buch-Band1.md"]
            )
            page = written[0].read_text(encoding="utf-8")
            self.assertTrue(page.startswith("---\nnoteType: Page\nstatus: NotStarted\n---\n"))
            self.assertIn("[[__-Buch-Band1|← Buch]]\n\nSeite eins.\n", page)

            index = written[-1].read_text(encoding="utf-8")
            self.assertIn("- [ ] [[000-Buch-Band1|Page 1]]\n", index)
            self.assertIn("- [ ] [[001-Buch-Band1|Page 2]]\n", index)

    def test_read_markdown_normalises_newlines(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "a.md"
            path.write_bytes("Eins\r\nZwei\rDrei".encode("utf-8"))
            self.assertEqual(read_markdown(path), "Eins\nZwei\nDrei")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
