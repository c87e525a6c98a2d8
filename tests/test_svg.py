"""Tests for vector fallback synthesis."""

from __future__ import annotations

import base64
import xml.etree.ElementTree as ET

import pytest

from slidekit_html.models import BorderSide
from slidekit_html.svg import (
    SVG_NS,
    blurred_svg,
    composite_border_svg,
    custom_shape_svg,
    gradient_svg,
    gradient_vector,
    prepare_node_svg,
)

PREFIX = "data:image/svg+xml;base64,"


def _decode(uri: str) -> str:
    assert uri.startswith(PREFIX)
    return base64.b64decode(uri[len(PREFIX):]).decode("utf-8")


def _root(uri: str) -> ET.Element:
    return ET.fromstring(_decode(uri))


@pytest.mark.unit
class TestCustomShape:
    def test_arc_path_and_fill(self):
        uri = custom_shape_svg(100, 50, "FF0000", 0.5, (10, 0, 0, 10))
        root = _root(uri)
        path = root.find(f"{{{SVG_NS}}}path")
        assert path.get("fill") == "#FF0000"
        assert path.get("fill-opacity") == "0.5"
        assert path.get("d").startswith("M 10 0")
        assert root.get("width") == "100"

    def test_overlapping_radii_legalized(self):
        body = _decode(custom_shape_svg(100, 40, "000000", 1.0, (60, 60, 60, 60)))
        assert "M 20 0" in body

    def test_deterministic(self):
        args = (80, 30, "00FF00", 1.0, (5, 0, 5, 0))
        assert custom_shape_svg(*args) == custom_shape_svg(*args)


@pytest.mark.unit
class TestCompositeBorder:
    def test_one_rect_per_visible_side(self):
        sides = {
            "top": BorderSide(width=2, style="solid", color="FF0000"),
            "right": BorderSide(),
            "bottom": BorderSide(width=4, style="solid", color="0000FF"),
            "left": BorderSide(),
        }
        root = _root(composite_border_svg(100, 50, 8, sides))
        rects = root.findall(f".//{{{SVG_NS}}}g/{{{SVG_NS}}}rect")
        assert [r.get("fill") for r in rects] == ["#FF0000", "#0000FF"]
        assert rects[1].get("y") == "46"

    def test_clip_radius_is_half(self):
        sides = {"left": BorderSide(width=3, style="solid", color="000000")}
        root = _root(composite_border_svg(100, 50, 8, sides))
        clip_rect = root.find(f".//{{{SVG_NS}}}clipPath/{{{SVG_NS}}}rect")
        assert clip_rect.get("rx") == "4"

    def test_clip_id_is_deterministic(self):
        sides = {"top": BorderSide(width=1, style="solid", color="123456")}
        assert composite_border_svg(10, 10, 0, sides) == composite_border_svg(10, 10, 0, sides)

    def test_no_visible_sides(self):
        assert composite_border_svg(10, 10, 0, {"top": BorderSide()}) is None


@pytest.mark.unit
class TestGradient:
    """Test linear-gradient translation."""

    def test_to_right_vector(self):
        assert gradient_vector("to right") == ("0%", "0%", "100%", "0%")

    def test_corner_words_in_any_order(self):
        assert gradient_vector("to right bottom") == gradient_vector("to bottom right")

    def test_angle_180_is_top_to_bottom(self):
        assert gradient_vector("180deg") == ("50.0%", "0.0%", "50.0%", "100.0%")

    def test_turn_units(self):
        assert gradient_vector("0.5turn") == gradient_vector("180deg")

    def test_color_is_not_a_direction(self):
        assert gradient_vector("red") is None

    def test_gradient_document(self):
        uri = gradient_svg(
            200, 100, "linear-gradient(to right, rgb(255, 0, 0), rgba(0, 0, 255, 0.5))"
        )
        root = _root(uri)
        gradient = root.find(f".//{{{SVG_NS}}}linearGradient")
        assert gradient.get("x1") == "0%"
        assert gradient.get("x2") == "100%"
        stops = gradient.findall(f"{{{SVG_NS}}}stop")
        assert [s.get("offset") for s in stops] == ["0%", "100%"]
        assert stops[1].get("stop-opacity") == "0.5"

    def test_explicit_stop_positions(self):
        root = _root(gradient_svg(10, 10, "linear-gradient(red 20%, blue 80%)"))
        stops = root.findall(f".//{{{SVG_NS}}}stop")
        assert [s.get("offset") for s in stops] == ["20%", "80%"]

    def test_border_stroke(self):
        root = _root(gradient_svg(10, 10, "linear-gradient(red, blue)", 2, ("112233", 3)))
        rect = root.find(f"{{{SVG_NS}}}rect")
        assert rect.get("stroke") == "#112233"
        assert rect.get("stroke-width") == "3"
        assert rect.get("rx") == "2"

    def test_unrecognized_syntax(self):
        assert gradient_svg(10, 10, "radial-gradient(red, blue)") is None
        assert gradient_svg(10, 10, "linear-gradient(red)") is None


@pytest.mark.unit
class TestBlur:
    def test_padding_is_three_blur_radii(self):
        uri, padding = blurred_svg(100, 50, "FF0000", 0, 4)
        assert padding == 12
        root = _root(uri)
        assert root.get("width") == "124"
        assert root.get("height") == "74"

    def test_circle_uses_ellipse(self):
        uri, _ = blurred_svg(40, 40, "000000", 20, 2)
        assert _root(uri).find(f"{{{SVG_NS}}}ellipse") is not None


@pytest.mark.unit
class TestPrepareNodeSvg:
    def test_sets_size_and_namespace(self):
        markup = prepare_node_svg('<svg><circle r="4"/></svg>', 32, 16)
        root = ET.fromstring(markup)
        assert root.tag == f"{{{SVG_NS}}}svg"
        assert root.get("width") == "32"
        assert root.get("height") == "16"
        assert root.find(f"{{{SVG_NS}}}circle") is not None

    def test_default_size(self):
        root = ET.fromstring(prepare_node_svg(f'<svg xmlns="{SVG_NS}"/>', 0, 0))
        assert root.get("width") == "300"
        assert root.get("height") == "150"

    def test_malformed_raises(self):
        with pytest.raises(ET.ParseError):
            prepare_node_svg("<svg><g></svg>", 10, 10)
