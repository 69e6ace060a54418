"""
Tests for selection, confirmation, font preloading and batch orchestration.

Run: python3 test_batch.py
From: python/
"""

import asyncio
import sys

sys.path.insert(0, '.')

from sortlines.batch import sort_selection
from sortlines.confirm import confirm, perform_action_html
from sortlines.fonts import FontNotLoadedError, FontUnavailableError, get_font_names
from sortlines.models import MIXED, FontName
from sortlines.scene import (
    FontRegistry,
    FrameNode,
    GroupNode,
    InstanceNode,
    RectangleNode,
    SceneHost,
    ScriptedSurface,
    TextNode,
)
from sortlines.selection import get_all_children, selected_text_nodes
from sortlines.sorter.engine import sort_lines

INTER = FontName(family="Inter", style="Regular")
ROBOTO = FontName(family="Roboto", style="Bold")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _host(nodes, responses=(), available=None):
    registry = FontRegistry(available)
    for node in nodes:
        if isinstance(node, TextNode):
            node.registry = registry
    return SceneHost(nodes, ui=ScriptedSurface(responses), registry=registry)


class BrokenResizeSurface(ScriptedSurface):
    def resize(self, width, height):
        raise RuntimeError("surface gone")


class ExplodingTextNode(TextNode):
    def set_range_text_case(self, start, end, value):
        raise RuntimeError("text case rejected")


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

def test_get_all_children_order_and_remote_pruning():
    inner = TextNode("inner", name="inner")
    hidden_lib = TextNode("lib", name="lib")
    a = TextNode("a", name="a")
    group = GroupNode([inner], name="group")
    remote = InstanceNode([hidden_lib], name="remote", remote=True)
    local = InstanceNode([TextNode("local", name="local")], name="local-instance", remote=False)
    frame = FrameNode([group, remote, local], name="frame")

    names = [n.name for n in get_all_children([frame, a])]
    assert names == ["frame", "a", "group", "inner", "remote", "local-instance", "local"]
    assert "lib" not in names
    assert [n.name for n in get_all_children(a)] == ["a"]
    print("PASS: test_get_all_children_order_and_remote_pruning")


def test_selected_text_nodes_filters_type_and_visibility():
    visible = TextNode("x", name="visible")
    invisible = TextNode("y", name="invisible", visible=False)
    frame = FrameNode([visible, invisible, RectangleNode(name="rect")])

    assert [n.name for n in selected_text_nodes([frame])] == ["visible"]
    print("PASS: test_selected_text_nodes_filters_type_and_visibility")


# ---------------------------------------------------------------------------
# Confirmation gate
# ---------------------------------------------------------------------------

def test_confirm_applies_resize_then_resolves_once():
    surface = ScriptedSurface([{"width": 300, "height": 120}, {"confirm": True}, {"confirm": False}])
    result = asyncio.run(confirm(surface, 3))

    assert result is True
    assert surface.closed
    assert surface.sizes == [(400, 170), (300, 120)]
    assert surface.requests[0].amount == 3
    print("PASS: test_confirm_applies_resize_then_resolves_once")


def test_confirm_ignores_malformed_messages():
    surface = ScriptedSurface([{"confirm": "yes"}, {"width": "wide"}, {"confirm": False}])
    assert asyncio.run(confirm(surface, 2)) is False
    assert surface.sizes == [(400, 170)]
    print("PASS: test_confirm_ignores_malformed_messages")


def test_surface_error_fails_the_gate():
    surface = BrokenResizeSurface([{"width": 300, "height": 120}, {"confirm": True}])
    try:
        asyncio.run(confirm(surface, 2))
        assert False, "expected RuntimeError"
    except RuntimeError as e:
        assert "surface gone" in str(e)
    assert not surface.closed

    nodes = [TextNode("b\na"), TextNode("d\nc")]
    host = _host(nodes)
    host.ui = BrokenResizeSurface([{"width": 300, "height": 120}])
    try:
        asyncio.run(sort_selection(host))
        assert False, "expected RuntimeError"
    except RuntimeError:
        pass
    assert [n.characters for n in nodes] == ["b\na", "d\nc"]
    assert host.closed
    print("PASS: test_surface_error_fails_the_gate")


def test_dialog_labels_depend_on_amount():
    few = perform_action_html(3)
    many = perform_action_html(1234)
    assert "Yep!" in few and "Nevermind<" in few
    assert "This will sort 3 text components." in few
    assert "Yes, Do It!" in many and "Nevermind 😵" in many
    assert "This will sort 1,234 text components." in many
    print("PASS: test_dialog_labels_depend_on_amount")


# ---------------------------------------------------------------------------
# Fonts
# ---------------------------------------------------------------------------

def test_get_font_names_skips_mixed_and_inherited():
    node = TextNode("abc")
    node.set_range_font_name(1, 2, ROBOTO)
    node.set_range_font_name(2, 3, FontName(family=None))
    node.mark_indeterminate("font_name", 0)

    assert get_font_names(node) == [ROBOTO]
    assert get_font_names([TextNode("x"), node]) == [INTER, ROBOTO]
    print("PASS: test_get_font_names_skips_mixed_and_inherited")


def test_editing_requires_loaded_fonts():
    node = TextNode("b\na", registry=FontRegistry())
    try:
        sort_lines(node)
        assert False, "expected FontNotLoadedError"
    except FontNotLoadedError:
        pass
    assert node.characters == "b\na"
    print("PASS: test_editing_requires_loaded_fonts")


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------

def test_single_node_sorts_without_confirmation():
    node = TextNode("b\na")
    host = _host([node])
    result = asyncio.run(sort_selection(host))

    assert node.characters == "a\nb"
    assert host.ui.requests == []
    assert host.notifications == ["Sorted 1 text components!"]
    assert result.sorted == 1 and not result.cancelled
    assert host.closed
    print("PASS: test_single_node_sorts_without_confirmation")


def test_declined_confirmation_changes_nothing():
    nodes = [TextNode("b\na"), TextNode("d\nc"), TextNode("f\ne")]
    for node in nodes:
        node.set_range_font_name(0, 1, ROBOTO)
    host = _host(nodes, responses=[{"width": 280, "height": 150}, {"confirm": False}])

    result = asyncio.run(sort_selection(host))

    assert result.cancelled and result.sorted == 0
    assert [n.characters for n in nodes] == ["b\na", "d\nc", "f\ne"]
    assert all(n.style_at(0)["font_name"] == ROBOTO for n in nodes)
    assert host.registry.requests == []
    assert host.notifications == []
    assert host.ui.closed and host.closed
    print("PASS: test_declined_confirmation_changes_nothing")


def test_accepted_confirmation_sorts_every_node():
    nodes = [TextNode("b\na"), FrameNode([TextNode("d\nc")])]
    text_nodes = [nodes[0], nodes[1].children[0]]
    host = _host(text_nodes, responses=[{"confirm": True}])
    host.selection = nodes

    result = asyncio.run(sort_selection(host))

    assert result.sorted == 2
    assert [n.characters for n in text_nodes] == ["a\nb", "c\nd"]
    assert host.ui.requests[0].amount == 2
    assert host.notifications == ["Sorted 2 text components!"]
    print("PASS: test_accepted_confirmation_sorts_every_node")


def test_empty_selection_still_reports_completion():
    host = _host([])
    host.selection = [RectangleNode()]
    result = asyncio.run(sort_selection(host))

    assert host.notifications == [
        "Please select a text node before sorting",
        "Sorted 0 text components!",
    ]
    assert host.ui.requests == []
    assert result.selected == 0 and result.sorted == 0
    assert host.closed
    print("PASS: test_empty_selection_still_reports_completion")


def test_fonts_of_all_nodes_load_before_sorting():
    first = TextNode("b\na")
    second = TextNode("d\nc")
    second.set_range_font_name(0, 3, ROBOTO)
    host = _host([first, second], responses=[{"confirm": True}])

    asyncio.run(sort_selection(host))

    assert set(host.registry.requests) == {INTER, ROBOTO}
    assert len(host.registry.requests) == 2
    assert first.characters == "a\nb" and second.characters == "c\nd"
    print("PASS: test_fonts_of_all_nodes_load_before_sorting")


def test_unavailable_font_aborts_before_any_change():
    first = TextNode("b\na")
    second = TextNode("d\nc")
    second.set_range_font_name(0, 1, ROBOTO)
    host = _host([first, second], responses=[{"confirm": True}], available=[INTER])

    try:
        asyncio.run(sort_selection(host))
        assert False, "expected FontUnavailableError"
    except FontUnavailableError as e:
        assert e.font_name == ROBOTO

    assert first.characters == "b\na" and second.characters == "d\nc"
    assert host.notifications == []
    assert host.closed
    print("PASS: test_unavailable_font_aborts_before_any_change")


def test_setter_failure_stops_remaining_nodes():
    done = TextNode("b\na")
    failing = ExplodingTextNode("d\nc")
    untouched = TextNode("f\ne")
    host = _host([done, failing, untouched], responses=[{"confirm": True}])

    try:
        asyncio.run(sort_selection(host))
        assert False, "expected RuntimeError"
    except RuntimeError:
        pass

    assert done.characters == "a\nb"
    assert failing.characters == "c\nd"
    assert untouched.characters == "f\ne"
    assert host.notifications == []
    assert host.closed
    print("PASS: test_setter_failure_stops_remaining_nodes")


def test_threshold_is_configurable():
    nodes = [TextNode("b\na"), TextNode("d\nc")]
    host = _host(nodes)
    result = asyncio.run(sort_selection(host, threshold=5))

    assert result.sorted == 2
    assert host.ui.requests == []
    print("PASS: test_threshold_is_configurable")


def test_mixed_font_name_is_not_loaded():
    node = TextNode("b\na")
    node.mark_indeterminate("font_name", 1)
    host = _host([node])

    asyncio.run(sort_selection(host))
    assert host.registry.requests == [INTER]
    assert node.characters == "a\nb"
    assert node.get_range_font_name(0, 3) is not MIXED
    print("PASS: test_mixed_font_name_is_not_loaded")


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    tests = [
        test_get_all_children_order_and_remote_pruning,
        test_selected_text_nodes_filters_type_and_visibility,
        test_confirm_applies_resize_then_resolves_once,
        test_confirm_ignores_malformed_messages,
        test_surface_error_fails_the_gate,
        test_dialog_labels_depend_on_amount,
        test_get_font_names_skips_mixed_and_inherited,
        test_editing_requires_loaded_fonts,
        test_single_node_sorts_without_confirmation,
        test_declined_confirmation_changes_nothing,
        test_accepted_confirmation_sorts_every_node,
        test_empty_selection_still_reports_completion,
        test_fonts_of_all_nodes_load_before_sorting,
        test_unavailable_font_aborts_before_any_change,
        test_setter_failure_stops_remaining_nodes,
        test_threshold_is_configurable,
        test_mixed_font_name_is_not_loaded,
    ]

    passed = 0
    failed = 0
    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"FAIL: {test.__name__}: {e}")
            import traceback
            traceback.print_exc()
            failed += 1

    print(f"\n{'='*60}")
    print(f"Results: {passed} passed, {failed} failed out of {len(tests)} tests")
    if failed == 0:
        print("ALL TESTS PASSED")
    else:
        print("SOME TESTS FAILED")
