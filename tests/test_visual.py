"""Tests for ImageChartVisual in visual.py.

Drives full update cycles with the fakes from conftest and checks the render
plan, opacity, click dispatch, tooltips and format-pane enumeration.
"""

import pytest

from pyimagechartqt.config import ChartConfig, Viewport
from pyimagechartqt.models import PersistedProperties, SelectionKey
from pyimagechartqt.visual import DEFAULT_AXIS_COLOR, OPACITY_RANGE, ImageChartVisual, RenderPlan, VisualHost

from conftest import make_result

KEY_A = SelectionKey("Product.Name", "A")
KEY_B = SelectionKey("Product.Name", "B")
KEY_C = SelectionKey("Product.Name", "C")


def general(opacity):
    return PersistedProperties(objects={"generalView": {"opacity": opacity}})


def bar_center(plan, index):
    bar = plan.bars[index]
    return plan.margins.left + bar.x + bar.width / 2, plan.margins.top + bar.y + bar.height / 2


class TestUpdateCycle:
    """Tests for update() and the render plan."""

    def test_three_bars(self, visual, viewport):
        """Test the A/B/C scenario end to end."""
        plan = visual.update(make_result(), None, viewport)
        assert plan.renderable is True
        assert [bar.category for bar in plan.bars] == ["A", "B", "C"]
        assert [bar.key for bar in plan.bars] == [KEY_A, KEY_B, KEY_C]
        assert visual.model.min_value == 5 and visual.model.max_value == 20
        assert all(bar.fill_opacity == 1.0 for bar in plan.bars)
        assert plan.images_enabled is False

    def test_bar_geometry(self, visual, viewport):
        """Test that bars sit on the band scale and grow up from the bottom."""
        plan = visual.update(make_result(), None, viewport)
        scale = visual.layout_result.category_scale
        for i, bar in enumerate(plan.bars):
            assert bar.x == pytest.approx(scale.position(i))
            assert bar.width == pytest.approx(scale.bandwidth)
            assert bar.y + bar.height == pytest.approx(plan.inner_height)
        # The minimum value has zero height, the maximum spans the plot
        assert plan.bars[1].height == pytest.approx(0)
        assert plan.bars[2].y == pytest.approx(0)

    def test_small_viewport_clears(self, visual):
        """Test that a 50x50 viewport produces an empty plan."""
        plan = visual.update(make_result(), None, Viewport(50, 50))
        assert plan.renderable is False
        assert plan.bars == ()

    def test_renderable_then_cleared(self, visual, viewport):
        """Test that a later empty update replaces the previous plan."""
        visual.update(make_result(), None, viewport)
        plan = visual.update(None, None, viewport)
        assert plan == RenderPlan.empty(600, 400)
        assert visual.plan is plan

    def test_labels_follow_category_axis(self, visual, viewport):
        """Test that labels are centered on bands and hidden with the axis."""
        plan = visual.update(make_result(), None, viewport)
        scale = visual.layout_result.category_scale
        assert [label.text for label in plan.category_labels] == ["A", "B", "C"]
        assert plan.category_labels[0].x == pytest.approx(scale.center(0))

        hidden = PersistedProperties(objects={"categoryAxis": {"show": False}})
        assert visual.update(make_result(), hidden, viewport).category_labels == ()

    def test_value_ticks_hidden_with_axis(self, visual, viewport):
        """Test that ticks disappear with the value axis."""
        assert visual.update(make_result(), None, viewport).value_ticks
        hidden = PersistedProperties(objects={"valueAxis": {"show": False}})
        assert visual.update(make_result(), hidden, viewport).value_ticks == ()

    def test_axis_styles(self, visual, viewport):
        """Test axis colors, fonts and titles in the plan."""
        props = PersistedProperties(objects={
            "valueAxis": {"showAxisTitle": True, "color": "#336699", "fontSize": 14},
            "categoryAxis": {"showAxisTitle": True, "title": "Items"},
        })
        plan = visual.update(make_result(), props, viewport)
        assert plan.value_axis.title == "Sales"
        assert plan.value_axis.color == "#336699"
        assert plan.value_axis.font_size == 14
        assert plan.category_axis.title == "Items"
        assert plan.category_axis.color == DEFAULT_AXIS_COLOR

    def test_settings_refreshed_every_cycle(self, visual, viewport):
        """Test that settings are re-resolved from the latest properties."""
        visual.update(make_result(), general(40), viewport)
        assert visual.settings.general_view.opacity == 40
        visual.update(make_result(), None, viewport)
        assert visual.settings.general_view.opacity == 100


class TestImages:
    """Tests for image textures in the plan."""

    def test_images_enabled(self, visual, viewport):
        """Test that image URLs and the tile size reach the plan."""
        plan = visual.update(make_result(images=("a.png", "b.png", None)), None, viewport)
        assert plan.images_enabled is True
        assert [bar.image_url for bar in plan.bars] == ["a.png", "b.png", None]
        bandwidth = plan.bars[0].width
        assert plan.image_size[0] == pytest.approx(bandwidth * 4)
        assert plan.image_size[1] == pytest.approx(bandwidth * 4 / 1024 * 768)

    def test_images_disabled_by_setting(self, visual, viewport):
        """Test that the setting strips image URLs from the bars."""
        props = PersistedProperties(objects={"enableImages": {"show": False}})
        plan = visual.update(make_result(images=("a.png", "b.png", "c.png")), props, viewport)
        assert plan.images_enabled is False
        assert all(bar.image_url is None for bar in plan.bars)


class TestOpacity:
    """Tests for base opacity combined with selection."""

    @pytest.mark.parametrize(
        "setting, expected",
        [(100, 1.0), (40, 0.4), (10, 0.1), (5, 0.1), (0, 0.1), (250, 1.0)],
    )
    def test_base_opacity_limited(self, visual, viewport, setting, expected):
        """Test that the general opacity is limited to 10..100 percent."""
        plan = visual.update(make_result(), general(setting), viewport)
        assert visual.base_opacity() == pytest.approx(expected)
        assert plan.bars[0].fill_opacity == pytest.approx(expected)

    def test_selection_multiplies_base(self, visual, viewport):
        """Test that dimmed bars combine the selection and general opacity."""
        visual.update(make_result(), general(80), viewport)
        visual.on_point_click(0)
        assert visual.bar_opacity(KEY_A) == pytest.approx(0.8)
        assert visual.bar_opacity(KEY_B) == pytest.approx(0.4)
        assert visual.bar_opacities() == pytest.approx({KEY_A: 0.8, KEY_B: 0.4, KEY_C: 0.4})

    def test_fill_css(self, visual, viewport):
        """Test the CSS form of a bar fill."""
        plan = visual.update(make_result(), general(50), viewport)
        assert plan.bars[0].fill_css.startswith("rgba(")
        assert plan.bars[0].fill_css.endswith(",0.5)")


class TestClicks:
    """Tests for click dispatch through the visual."""

    def test_hit_test(self, visual, viewport):
        """Test that bar centers hit their bars and the margin misses."""
        plan = visual.update(make_result(), None, viewport)
        assert visual.hit_test(*bar_center(plan, 0)) == 0
        assert visual.hit_test(*bar_center(plan, 2)) == 2
        assert visual.hit_test(1, 1) is None

    def test_hit_test_misses_band_padding(self, visual, viewport):
        """Test that the gap between two bars is background."""
        plan = visual.update(make_result(), None, viewport)
        first, second = plan.bars[0], plan.bars[1]
        gap = plan.margins.left + (first.x + first.width + second.x) / 2
        y = plan.margins.top + plan.inner_height - 1
        assert visual.hit_test(gap, y) is None

    def test_duplicate_categories_select_one_bar(self, visual, viewport):
        """Test that clicking one of two equal labels dims every other bar."""
        visual.update(make_result(("A", "A", "B"), (1, 2, 3)), None, viewport)
        visual.on_point_click(0)
        opacities = visual.bar_opacities()
        assert len(opacities) == 3
        assert sorted(opacities.values()) == [0.5, 0.5, 1.0]
        assert opacities[KEY_A] == 1.0

    def test_bar_click_selects_and_stops(self, visual, viewport):
        """Test that clicking a bar selects it without a background reset."""
        plan = visual.update(make_result(), None, viewport)
        event = visual.handle_click(*bar_center(plan, 2))
        assert event.propagation_stopped is True
        assert visual.selection_state().keys == frozenset({KEY_C})

    def test_background_click_clears(self, visual, viewport):
        """Test that clicking outside every bar clears the selection."""
        plan = visual.update(make_result(), None, viewport)
        visual.handle_click(*bar_center(plan, 0))
        event = visual.handle_click(1, 1)
        assert event.propagation_stopped is False
        assert visual.selection_state().is_empty

    def test_toggle_via_clicks(self, visual, viewport):
        """Test that clicking the selected bar again deselects it."""
        plan = visual.update(make_result(), None, viewport)
        visual.handle_click(*bar_center(plan, 0))
        visual.handle_click(*bar_center(plan, 0))
        assert visual.selection_state().is_empty

    def test_out_of_range_index_ignored(self, visual, viewport):
        """Test that stale indices do not raise."""
        visual.update(make_result(), None, viewport)
        visual.on_point_click(10)
        assert visual.selection_state().is_empty

    def test_interactions_disabled(self, palette, measurer, viewport):
        """Test that bar clicks fall through to the background when disabled."""
        visual = ImageChartVisual(VisualHost(palette=palette, measurer=measurer, allow_interactions=False))
        plan = visual.update(make_result(), None, viewport)
        event = visual.handle_click(*bar_center(plan, 0))
        assert event.propagation_stopped is False
        assert visual.selection_state().is_empty

    def test_deferred_confirmation(self, palette, measurer, deferred_service, viewport):
        """Test that opacity changes only after the host confirms."""
        host = VisualHost(palette=palette, measurer=measurer, selection_service=deferred_service)
        visual = ImageChartVisual(host)
        visual.update(make_result(), None, viewport)
        visual.on_point_click(1)
        assert visual.bar_opacity(KEY_A) == 1.0
        deferred_service.confirm()
        assert visual.bar_opacity(KEY_A) == 0.5

    def test_dispose(self, palette, measurer, deferred_service, viewport):
        """Test that a disposed visual ignores late confirmations."""
        host = VisualHost(palette=palette, measurer=measurer, selection_service=deferred_service)
        visual = ImageChartVisual(host)
        visual.update(make_result(), None, viewport)
        visual.on_point_click(0)
        visual.dispose()
        deferred_service.confirm()
        assert visual.selection_state().is_empty


class TestHostQueries:
    """Tests for tooltips and format-pane enumeration."""

    def test_tooltip(self, visual, viewport):
        """Test the tooltip of one bar: category, value and color."""
        visual.update(make_result(), None, viewport)
        [item] = visual.tooltip_items(KEY_A)
        assert item.display_name == "A"
        assert item.value == "10.000"
        assert item.color == visual.model.data_points[0].color

    def test_tooltip_unknown_key(self, visual, viewport):
        """Test that unknown keys have no tooltip."""
        visual.update(make_result(), None, viewport)
        assert visual.tooltip_items(SelectionKey("Product.Name", "Z")) == []

    def test_color_selector_instances(self, visual, viewport):
        """Test one color entry per bar, keyed by selection key."""
        visual.update(make_result(), None, viewport)
        instances = visual.enumerate_object_instances("colorSelector")
        assert [i.selector for i in instances] == [KEY_A, KEY_B, KEY_C]
        assert [i.display_name for i in instances] == ["A", "B", "C"]
        first = instances[0].properties["fill"]["solid"]["color"]
        assert first == visual.model.data_points[0].color

    def test_color_override_round_trip(self, visual, viewport):
        """Test that an edited fill is applied on the next cycle."""
        visual.update(make_result(), None, viewport)
        props = PersistedProperties().with_color_override(KEY_B, "#ff8800")
        plan = visual.update(make_result(), props, viewport)
        assert plan.bars[1].color == "#ff8800"
        entry = visual.enumerate_object_instances("colorSelector")[1]
        assert entry.properties["fill"] == {"solid": {"color": "#ff8800"}}

    def test_general_view_instance(self, visual, viewport):
        """Test that generalView reports opacity with its valid range."""
        visual.update(make_result(), general(70), viewport)
        [instance] = visual.enumerate_object_instances("generalView")
        assert instance.properties == {"opacity": 70}
        assert instance.valid_values == {"opacity": OPACITY_RANGE}

    def test_axis_instance(self, visual, viewport):
        """Test that axis objects report their current values."""
        visual.update(make_result(), None, viewport)
        [instance] = visual.enumerate_object_instances("valueAxis")
        assert instance.properties["show"] is True
        assert instance.properties["minValue"] is None
        assert instance.valid_values == {}

    def test_unknown_object(self, visual):
        """Test that unknown objects enumerate nothing."""
        assert visual.enumerate_object_instances("legend") == []


def test_default_collaborators(viewport):
    """Test a visual built without any host collaborators."""
    visual = ImageChartVisual(config=ChartConfig())
    plan = visual.update(make_result(), None, viewport)
    assert plan.renderable is True
    assert all(bar.color.startswith("#") for bar in plan.bars)
