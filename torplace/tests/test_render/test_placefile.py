"""Tests for placefile rendering: header, block grammar, ordering."""

from datetime import timedelta

import pytest

from torplace.models.reporting import PipelineStats
from torplace.models.warning import Category, ClassifiedWarning
from torplace.render.classifier import classify_warning
from torplace.render.placefile import (
    PlacefileRenderer,
    escape_text,
    render_block,
    warning_label,
)

HEADER = "Title: Past TORs\nRefresh: 9999\n\n"


async def _aiter(items):
    for item in items:
        yield item


async def _render(renderer, warnings, stats=None) -> str:
    classified = [classify_warning(w) for w in warnings]
    return "".join([c async for c in renderer.render(_aiter(classified), stats)])


def _blocks(text: str) -> list[str]:
    return [b for b in text[len(HEADER):].split("\n\n") if b]


class TestBlock:
    def test_observed_block(self, make_warning):
        cw = classify_warning(make_warning(tags={"observed"}))
        lines = render_block(cw).splitlines()
        assert lines[0] == "Color: 150 0 0"
        assert lines[1] == (
            'Line: 3.5, 0, "Observed\\nIssued: 2022-05-01 20:13 UTC'
            '\\nExpires: 2022-05-01 21:00 UTC"'
        )
        assert lines[2:5] == ["35.1, -97.5", "35.2, -97.4", "35.0, -97.3"]
        assert lines[5] == "End:"

    @pytest.mark.parametrize(
        "category,color,width",
        [
            (Category.RADAR_INDICATED, "255 0 0", "3"),
            (Category.OBSERVED, "150 0 0", "3.5"),
            (Category.PDS, "255 0 255", "4"),
            (Category.TORNADO_EMERGENCY, "0 0 0", "5"),
        ],
    )
    def test_color_and_width(self, make_warning, category, color, width):
        block = render_block(ClassifiedWarning(warning=make_warning(), category=category))
        assert block.startswith(f"Color: {color}\nLine: {width}, 0, \"{category.label}")

    def test_block_ends_with_blank_line(self, make_warning):
        assert render_block(classify_warning(make_warning())).endswith("End:\n\n")

    def test_label_includes_event(self, make_warning):
        cw = classify_warning(make_warning(office="KOUN", event_id=12))
        assert "KOUN TO.W.0012" in warning_label(cw)


class TestEscape:
    def test_quotes_and_backslashes(self):
        assert escape_text('say "hi" \\ bye') == 'say \\"hi\\" \\\\ bye'

    def test_newlines(self):
        assert escape_text("a\nb") == "a\\nb"

    def test_title_escaped_in_header(self):
        renderer = PlacefileRenderer(title='My\n"TORs"')
        assert renderer.header().startswith('Title: My\\n\\"TORs\\"\n')


class TestRender:
    @pytest.mark.asyncio
    async def test_empty_is_header_only(self):
        assert await _render(PlacefileRenderer(), []) == HEADER

    @pytest.mark.asyncio
    async def test_header_once(self, make_warning):
        text = await _render(PlacefileRenderer(), [make_warning(), make_warning()])
        assert text.startswith(HEADER)
        assert text.count("Title:") == 1

    @pytest.mark.asyncio
    async def test_ascending_issue_order(self, make_warning):
        t2 = make_warning(issued="2022-05-01T20:00:00", office="KOUN", event_id=2)
        t1 = make_warning(issued="2022-05-01T19:00:00", office="KOUN", event_id=1)
        t3 = make_warning(issued="2022-05-01T21:00:00", office="KOUN", event_id=3)

        text = await _render(PlacefileRenderer(), [t2, t1, t3])
        order = [text.index(f"TO.W.000{i}") for i in (1, 2, 3)]
        assert order == sorted(order)

    @pytest.mark.asyncio
    async def test_ties_by_vertex_count_then_arrival(self, make_warning):
        square = ((35.0, -97.0), (35.1, -97.0), (35.1, -96.9), (35.0, -96.9))
        a = make_warning(polygon=square, office="KOUN", event_id=1)
        b = make_warning(office="KOUN", event_id=2)
        c = make_warning(office="KOUN", event_id=3)

        text = await _render(PlacefileRenderer(), [a, b, c])
        order = [text.index(f"TO.W.000{i}") for i in (2, 3, 1)]
        assert order == sorted(order)

    @pytest.mark.asyncio
    async def test_vertices_round_trip(self, make_warning):
        polygon = ((35.12, -97.51), (35.25, -97.4), (35.01, -97.33), (34.9, -97.45))
        text = await _render(PlacefileRenderer(), [make_warning(polygon=polygon)])
        (block,) = _blocks(text)
        vertex_lines = block.splitlines()[2:-1]
        assert vertex_lines == [f"{lat}, {lon}" for lat, lon in polygon]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("n", [0, 1, 2])
    async def test_degenerate_skipped(self, make_warning, n):
        polygon = ((35.1, -97.5), (35.2, -97.4))[:n]
        stats = PipelineStats(start="", end="")
        text = await _render(
            PlacefileRenderer(), [make_warning(polygon=polygon), make_warning()], stats
        )
        assert len(_blocks(text)) == 1
        assert stats.degenerate == 1
        assert stats.rendered == 1

    @pytest.mark.asyncio
    async def test_all_degenerate_is_header_only(self, make_warning):
        text = await _render(PlacefileRenderer(), [make_warning(polygon=())])
        assert text == HEADER

    @pytest.mark.asyncio
    async def test_streams_before_input_ends(self, make_warning):
        early = make_warning(issued="2022-05-01T00:00:00")
        late = make_warning(issued="2022-05-03T00:00:00")
        emitted: list[str] = []
        fed: list[str] = []

        async def source():
            for w in (early, late):
                fed.append(str(w.issued_at))
                yield classify_warning(w)
            # Both blocks would only appear here if the renderer buffered everything
            fed.append("end")

        renderer = PlacefileRenderer(reorder_window=timedelta(hours=24))
        async for chunk in renderer.render(source()):
            emitted.append(chunk)
            if "Issued: 2022-05-01 00:00" in chunk:
                assert "end" not in fed
        assert len(emitted) == 3

    @pytest.mark.asyncio
    async def test_orders_input_days_out_of_order(self, make_warning):
        t3 = make_warning(issued="2022-05-05T00:00:00", office="KOUN", event_id=3)
        t2 = make_warning(issued="2022-05-03T00:00:00", office="KOUN", event_id=2)
        t1 = make_warning(issued="2022-05-01T00:00:00", office="KOUN", event_id=1)

        text = await _render(PlacefileRenderer(), [t3, t2, t1])
        order = [text.index(f"TO.W.000{i}") for i in (1, 2, 3)]
        assert order == sorted(order)

    @pytest.mark.asyncio
    async def test_window_holds_blocks_still_inside_it(self, make_warning):
        t2 = make_warning(issued="2022-05-01T12:00:00", office="KOUN", event_id=2)
        t1 = make_warning(issued="2022-05-01T00:00:00", office="KOUN", event_id=1)
        t3 = make_warning(issued="2022-05-02T06:00:00", office="KOUN", event_id=3)

        renderer = PlacefileRenderer(reorder_window=timedelta(hours=24))
        text = await _render(renderer, [t2, t1, t3])
        order = [text.index(f"TO.W.000{i}") for i in (1, 2, 3)]
        assert order == sorted(order)

    @pytest.mark.asyncio
    async def test_no_window_waits_for_end_of_input(self, make_warning):
        fed: list[str] = []

        async def source():
            for day in ("2022-05-01", "2022-05-03"):
                fed.append(day)
                yield classify_warning(make_warning(issued=f"{day}T00:00:00"))
            fed.append("end")

        async for chunk in PlacefileRenderer().render(source()):
            if chunk.startswith("Color:"):
                assert fed[-1] == "end"
