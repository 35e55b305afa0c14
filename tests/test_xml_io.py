"""Tests for htmltoc.xml_reader and htmltoc.xml_writer."""
from __future__ import annotations

import io
import logging

import pytest

from htmltoc.errors import XmlSyntaxError
from htmltoc.events import (
    Characters,
    Comment,
    EndDocument,
    EndElement,
    EntityReference,
    ProcessingInstruction,
    StartDocument,
    StartElement,
)
from htmltoc.reporting import ErrorReporter
from htmltoc.xml_reader import iter_events, iter_text_events
from htmltoc.xml_writer import serialize


class TestReader:
    def test_event_sequence(self) -> None:
        events = list(iter_text_events('<r a="1" b="2"><?pi data?><!--c--><e/>t</r>'))
        assert isinstance(events[0], StartDocument)
        assert isinstance(events[-1], EndDocument)
        root = events[1]
        assert isinstance(root, StartElement)
        assert root.attributes == (("a", "1"), ("b", "2"))
        assert root.self_closing is False
        assert events[2] == ProcessingInstruction("pi", "data", location=events[2].location)
        assert isinstance(events[3], Comment) and events[3].text == "c"
        empty = events[4]
        assert isinstance(empty, StartElement) and empty.self_closing
        assert isinstance(events[5], EndElement) and events[5].name == "e"
        assert isinstance(events[6], Characters) and events[6].text == "t"

    def test_locations_are_recorded(self) -> None:
        events = list(iter_text_events("<r>\n  <p>x</p>\n</r>"))
        p = next(e for e in events if isinstance(e, StartElement) and e.name == "p")
        assert p.location is not None
        assert p.location.line == 2
        assert p.location.column == 3

    def test_quoted_gt_does_not_end_tag(self) -> None:
        events = list(iter_text_events('<r><e title="a>b"/></r>'))
        e = next(ev for ev in events if isinstance(ev, StartElement) and ev.name == "e")
        assert e.self_closing
        assert e.get("title") == "a>b"

    def test_cdata_is_flagged(self) -> None:
        events = list(iter_text_events("<r><![CDATA[<x>]]></r>"))
        chars = [e for e in events if isinstance(e, Characters)]
        assert chars and all(c.cdata for c in chars)
        assert "".join(c.text for c in chars) == "<x>"

    def test_html_entities_resolved(self) -> None:
        events = list(iter_text_events("<r>&copy; 2013&nbsp;x</r>"))
        text = "".join(e.text for e in events if isinstance(e, Characters))
        assert text == "© 2013 x"

    def test_unknown_entity_passes_through_with_warning(self) -> None:
        reporter = ErrorReporter()
        events = list(iter_text_events("<r>&bogus;</r>", reporter=reporter))
        assert any(isinstance(e, EntityReference) and e.name == "bogus" for e in events)
        assert reporter.warnings == 1

    def test_html_entities_resolved_in_attributes(self) -> None:
        reporter = ErrorReporter()
        events = list(iter_text_events(
            '<r><p title="Caf&eacute;&nbsp;Bar &amp; &#233;">x</p></r>', reporter=reporter,
        ))
        p = next(e for e in events if isinstance(e, StartElement) and e.name == "p")
        assert p.get("title") == "Caf\u00e9\u00a0Bar & \u00e9"
        assert reporter.warnings == 0

    def test_unknown_entity_in_attribute_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        reporter = ErrorReporter()
        with caplog.at_level(logging.WARNING, logger="htmltoc"):
            events = list(iter_text_events('<r><p title="a&bogus;b">x</p></r>', reporter=reporter))
        p = next(e for e in events if isinstance(e, StartElement) and e.name == "p")
        assert p.get("title") == "ab"
        assert reporter.warnings == 1
        assert "&bogus;" in caplog.text

    def test_internal_subset_entities_in_attributes(self) -> None:
        reporter = ErrorReporter()
        doc = '<!DOCTYPE r [<!ENTITY who "Ann">]><r by="&who;">&who;</r>'
        events = list(iter_text_events(doc, reporter=reporter))
        root = next(e for e in events if isinstance(e, StartElement))
        assert root.get("by") == "Ann"
        assert reporter.warnings == 0

    def test_declared_dtd_is_replaced_by_entity_table(self) -> None:
        doc = (
            '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Strict//EN" '
            '"http://www.w3.org/TR/xhtml1/DTD/xhtml1-strict.dtd">'
            '<html title="&copy;">&mdash;</html>'
        )
        events = list(iter_text_events(doc))
        root = next(e for e in events if isinstance(e, StartElement))
        assert root.get("title") == "©"
        text = "".join(e.text for e in events if isinstance(e, Characters))
        assert text == "—"

    def test_malformed_input(self) -> None:
        with pytest.raises(XmlSyntaxError) as exc_info:
            list(iter_text_events("<r><p></r>"))
        assert exc_info.value.location is not None
        assert exc_info.value.location.line == 1

    def test_small_chunks_match_whole_input(self) -> None:
        doc = '<r><e a="x"/><p>some text &amp; more</p></r>'.encode()
        whole = serialize(iter_events(io.BytesIO(doc), encoding="utf-8"))
        chunked = serialize(iter_events(io.BytesIO(doc), encoding="utf-8", chunk_size=3))
        assert chunked == whole == doc.decode()

    def test_declared_encoding_overridden_by_caller(self) -> None:
        doc = '<?xml version="1.0" encoding="UTF-8"?><r>é</r>'.encode("latin-1")
        events = list(iter_events(io.BytesIO(doc), encoding="latin-1"))
        text = "".join(e.text for e in events if isinstance(e, Characters))
        assert text == "é"

    def test_undecodable_input(self) -> None:
        with pytest.raises(XmlSyntaxError, match="not valid utf-8") as exc_info:
            list(iter_events(io.BytesIO(b"<r>\xff</r>"), encoding="utf-8"))
        location = exc_info.value.location
        assert location is not None
        assert location.line is None
        assert location.describe() == "at offset 3"


class TestWriter:
    def test_escaping(self) -> None:
        out = serialize([
            StartElement("p", (("title", 'say "hi" & <go>\n'),)),
            Characters("1 < 2 & 3 > 2"),
            EndElement("p"),
        ])
        assert out == '<p title="say &quot;hi&quot; &amp; &lt;go&gt;&#10;">1 &lt; 2 &amp; 3 &gt; 2</p>'

    def test_empty_form_only_when_nothing_inserted(self) -> None:
        empty = StartElement("h1", self_closing=True)
        assert serialize([empty, EndElement("h1")]) == "<h1/>"
        assert serialize([
            empty, StartElement("a"), EndElement("a"), EndElement("h1"),
        ]) == "<h1><a></a></h1>"

    def test_other_events(self) -> None:
        out = serialize([
            Comment(" c "),
            ProcessingInstruction("t"),
            ProcessingInstruction("t", "d"),
            Characters("<raw>", cdata=True),
            EntityReference("bogus"),
        ])
        assert out == "<!-- c --><?t?><?t d?><![CDATA[<raw>]]>&bogus;"
