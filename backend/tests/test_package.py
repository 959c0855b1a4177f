"""Tests for pattern-based OPF parsing."""

from app.core.epub.markup import get_attr
from app.core.epub.models import DEFAULT_AUTHOR, DEFAULT_TITLE
from app.core.epub.package import (
    parse_cover_id,
    parse_manifest,
    parse_metadata,
    parse_package_document,
    parse_spine,
)
from epub_factory import build_opf


class TestMetadata:
    def test_prefixed_tags(self):
        opf = build_opf([], title="Night Tide", author="A. Author", description="A story.")
        metadata = parse_metadata(opf)
        assert metadata.title == "Night Tide"
        assert metadata.author == "A. Author"
        assert metadata.description == "A story."

    def test_unprefixed_tags(self):
        opf = (
            "<package><metadata>"
            "<title> Plain Title </title><creator>Someone</creator>"
            "</metadata></package>"
        )
        metadata = parse_metadata(opf)
        assert metadata.title == "Plain Title"
        assert metadata.author == "Someone"

    def test_defaults_apply_independently(self):
        metadata = parse_metadata(build_opf([], title=None, author="Only Author"))
        assert metadata.title == DEFAULT_TITLE
        assert metadata.author == "Only Author"
        assert metadata.description == ""

    def test_all_missing(self):
        metadata = parse_metadata("<package/>")
        assert metadata.title == "Untitled"
        assert metadata.author == DEFAULT_AUTHOR == "Unknown"
        assert metadata.description == ""

    def test_entities_and_nested_markup(self):
        opf = build_opf([], title="Tom &amp; Jerry", description="<p>Two <b>friends</b></p>")
        metadata = parse_metadata(opf)
        assert metadata.title == "Tom & Jerry"
        assert metadata.description == "Two friends"

    def test_namespaced_metadata_block(self):
        opf = "<opf:package><opf:metadata><dc:title>NS</dc:title></opf:metadata></opf:package>"
        assert parse_metadata(opf).title == "NS"

    def test_creator_with_attributes(self):
        opf = '<metadata><dc:creator opf:role="aut" id="c">Writer</dc:creator></metadata>'
        assert parse_metadata(opf).author == "Writer"


class TestManifest:
    def test_items_collected(self):
        opf = build_opf([
            ("c1", "ch1.xhtml", "application/xhtml+xml"),
            ("img", "images/a.png", "image/png"),
        ])
        manifest = parse_manifest(opf)
        assert set(manifest) == {"c1", "img"}
        assert manifest["img"].href == "images/a.png"
        assert manifest["img"].media_type == "image/png"

    def test_attribute_reordering_and_quotes(self):
        opf = (
            "<manifest>\n"
            "  <item media-type='application/xhtml+xml'   href='b.xhtml' id='b' extra=\"1\"/>\n"
            "</manifest>"
        )
        item = parse_manifest(opf)["b"]
        assert item.href == "b.xhtml"
        assert item.media_type == "application/xhtml+xml"

    def test_duplicate_id_last_write_wins(self):
        opf = (
            '<manifest><item id="x" href="first.xhtml"/>'
            '<item id="x" href="second.xhtml"/></manifest>'
        )
        assert parse_manifest(opf)["x"].href == "second.xhtml"

    def test_items_without_href_are_skipped(self):
        opf = '<manifest><item id="x"/><item href="y.xhtml"/></manifest>'
        assert parse_manifest(opf) == {}

    def test_missing_media_type(self):
        item = parse_manifest('<manifest><item id="c1" href="ch1.xhtml"/></manifest>')["c1"]
        assert item.media_type == ""
        assert item.is_document

    def test_no_manifest(self):
        assert parse_manifest("<package/>") == {}


class TestSpine:
    def test_order_and_duplicates_preserved(self):
        opf = build_opf(
            [("a", "a.xhtml", "application/xhtml+xml"), ("b", "b.xhtml", "application/xhtml+xml")],
            spine=["b", "a", "b"],
        )
        assert parse_spine(opf, parse_manifest(opf)) == ["b", "a", "b"]

    def test_dangling_idrefs_dropped(self):
        opf = build_opf([("a", "a.xhtml", "application/xhtml+xml")], spine=["ghost", "a"])
        assert parse_spine(opf, parse_manifest(opf)) == ["a"]

    def test_linear_attribute_tolerated(self):
        opf = (
            '<manifest><item id="a" href="a.xhtml"/></manifest>'
            '<spine toc="ncx"><itemref linear="no" idref="a"/></spine>'
        )
        assert parse_spine(opf, parse_manifest(opf)) == ["a"]


class TestCover:
    def test_cover_meta(self):
        opf = build_opf([("cover-img", "cover.jpg", "image/jpeg")], cover_id="cover-img")
        assert parse_cover_id(opf) == "cover-img"

    def test_cover_meta_content_first(self):
        assert parse_cover_id('<meta content="cv" name="cover"/>') == "cv"

    def test_other_meta_ignored(self):
        assert parse_cover_id('<meta name="generator" content="x"/>') is None


class TestPackageDocument:
    def test_cover_item_resolved_through_manifest(self):
        opf = build_opf(
            [("c1", "ch1.xhtml", "application/xhtml+xml"), ("cv", "img/cover.png", "image/png")],
            spine=["c1"],
            cover_id="cv",
        )
        package = parse_package_document(opf)
        assert package.spine == ["c1"]
        assert package.cover_item.href == "img/cover.png"

    def test_cover_id_not_in_manifest(self):
        package = parse_package_document(build_opf([], cover_id="missing"))
        assert package.cover_id == "missing"
        assert package.cover_item is None


class TestGetAttr:
    def test_id_does_not_match_idref(self):
        assert get_attr('<itemref idref="c1"/>', "id") is None

    def test_id_does_not_match_prefixed_attribute(self):
        assert get_attr('<item xml:id="z" id="c1"/>', "id") == "c1"

    def test_value_with_other_quote(self):
        assert get_attr("<a title='say \"hi\"'/>", "title") == 'say "hi"'
