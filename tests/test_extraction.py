"""Tests for schema-driven listing extraction."""

import re

from bs4 import BeautifulSoup

from hogarscan.collectors.extraction import SOURCE_ID_KEY, extract_card, extract_listings
from hogarscan.collectors.schema import ExtractionConfig


def first_card(html: str, config: ExtractionConfig):
    return BeautifulSoup(html, "html.parser").select_one(config.card_selector)


class TestExtractCard:
    """Test field extraction from a single card."""

    def test_selectors_and_patterns(self, schema, card_factory):
        config = schema.extraction
        card = first_card(card_factory("A1", "Apartamento en Usaquén"), config)

        record = extract_card(card, config)

        assert record["title"] == "Apartamento en Usaquén"
        assert record["price"] == "$ 2.000.000"
        assert record["area"] == "80 m²"
        assert record["location"] == "Usaquén, Santa Bárbara, Bogotá"
        assert record["amenities"] == "Gimnasio, Piscina"
        assert record["images"] == ["/img/A1.jpg"]
        assert record["link"] == "/inmueble/A1"
        # Not covered by a selector, recovered from card text
        assert record["rooms"] == "3"
        assert record["bathrooms"] == "2"
        assert record["parking"] == "1"
        assert record[SOURCE_ID_KEY] == "A1"

    def test_first_selector_wins(self):
        config = ExtractionConfig(
            card_selector=".card",
            selectors={"title": (".headline", "h3")},
        )
        html = '<div class="card"><h3>Fallback title</h3><b class="headline">Main title</b></div>'

        record = extract_card(first_card(html, config), config)

        assert record["title"] == "Main title"

    def test_empty_selector_falls_through(self):
        config = ExtractionConfig(
            card_selector=".card",
            selectors={"title": (".headline", "h3")},
        )
        html = '<div class="card"><b class="headline"> </b><h3>Casa campestre</h3></div>'

        record = extract_card(first_card(html, config), config)

        assert record["title"] == "Casa campestre"

    def test_selector_beats_pattern(self):
        config = ExtractionConfig(
            card_selector=".card",
            selectors={"rooms": (".rooms",)},
            patterns={"rooms": (re.compile(r"(\d+)\s*hab"),)},
        )
        html = '<div class="card"><span class="rooms">4</span> 2 hab</div>'

        record = extract_card(first_card(html, config), config)

        assert record["rooms"] == "4"

    def test_pattern_without_group_uses_whole_match(self):
        config = ExtractionConfig(
            card_selector=".card",
            selectors={},
            patterns={"price": (re.compile(r"\$\s*[\d.]+"),)},
        )
        html = '<div class="card">Arriendo $ 1.800.000 mensual</div>'

        record = extract_card(first_card(html, config), config)

        assert record["price"] == "$ 1.800.000"

    def test_lazy_images_and_srcset(self):
        config = ExtractionConfig(card_selector=".card", selectors={"images": ("img",)})
        html = """
        <div class="card">
          <img src="data:image/gif;base64,AAAA" data-src="/lazy.jpg">
          <img srcset="/small.jpg 1x, /big.jpg 2x">
        </div>
        """

        record = extract_card(first_card(html, config), config)

        assert record["images"] == ["/lazy.jpg", "/small.jpg"]

    def test_card_itself_is_link(self):
        config = ExtractionConfig(
            card_selector="a.card",
            selectors={"title": ("h2",), "link": (".missing",)},
        )
        html = '<a class="card" href="/inmueble/987654"><h2>Apartaestudio</h2></a>'

        record = extract_card(first_card(html, config), config)

        assert record["link"] == "/inmueble/987654"

    def test_data_url_link(self):
        config = ExtractionConfig(card_selector=".card", selectors={"link": (".go",)})
        html = '<div class="card"><span class="go" data-url="/p/55555">Ver</span></div>'

        record = extract_card(first_card(html, config), config)

        assert record["link"] == "/p/55555"


class TestExtractListings:
    """Test page-level extraction."""

    def test_all_cards(self, schema, card_factory, page_factory):
        html = page_factory(
            [card_factory("A1", "Apartamento uno"), card_factory("A2", "Apartamento dos")]
        )

        result = extract_listings(html, schema.extraction)

        assert [r["title"] for r in result.records] == ["Apartamento uno", "Apartamento dos"]
        assert result.skipped == 0
        assert result.has_next is False

    def test_empty_card_counted_as_skip(self, schema, card_factory, page_factory):
        html = page_factory([card_factory("A1", "Apartamento uno"), '<div class="card"></div>'])

        result = extract_listings(html, schema.extraction)

        assert len(result.records) == 1
        assert result.skipped == 1

    def test_card_with_only_id_is_skipped(self, schema, page_factory):
        html = page_factory(['<div class="card" data-id="X9"></div>'])

        result = extract_listings(html, schema.extraction)

        assert result.records == []
        assert result.skipped == 1

    def test_wrapper_card_ignored(self, schema, card_factory):
        html = '<div class="card wrapper">' + card_factory("A1", "Apartamento uno") + "</div>"

        result = extract_listings(html, schema.extraction)

        assert len(result.records) == 1
        assert result.records[0][SOURCE_ID_KEY] == "A1"

    def test_next_page_detected(self, schema, card_factory, page_factory):
        html = page_factory([card_factory("A1", "Apartamento uno")], has_next=True)

        assert extract_listings(html, schema.extraction).has_next is True

    def test_disabled_next_page(self, schema, card_factory):
        html = (
            card_factory("A1", "Apartamento uno")
            + '<nav class="pagination"><a class="next disabled">Siguiente</a></nav>'
        )

        assert extract_listings(html, schema.extraction).has_next is False

    def test_no_cards(self, schema):
        result = extract_listings("<html><body>Sin resultados</body></html>", schema.extraction)

        assert result.records == []
        assert result.skipped == 0
