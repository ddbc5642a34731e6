# flows_api/infrastructure/sankey_renderer.py
#
# Render a FlowGraph as an interactive Sankey page.
#
# Design decisions:
#   - Node and link geometry is delegated to Plotly's Sankey trace. This module
#     only decides sizes, colours, hover text and interaction wiring.
#   - The viewport is explicit input (Viewport). The page reports its real
#     size back through the width/height query parameters, so nothing here
#     reads browser state.
#   - Vertical room grows with total flow: one viewport height up to six,
#     one inner height per 10,000 units of monthly flow.
#   - Pan/zoom is a CSS transform on the figure container. The initial
#     transform fits the figure into the viewport (FitTransform); wheel zoom is
#     bounded by ZOOM_EXTENT.
#   - Node colours come from the category10 palette in node order; links take
#     the colour of their source node at half opacity.
#   - Clicking a node opens its url in a new tab. Funding Source has none.
from __future__ import annotations

import html
import json
from dataclasses import dataclass

import plotly.graph_objects as go

from flows_api.domain.flow.entities import FlowGraph

CATEGORY10: tuple[str, ...] = (
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#bcbd22",
    "#17becf",
)

NODE_THICKNESS = 32
NODE_PADDING = 2
NODE_OPACITY = 0.8
LINK_OPACITY = 0.5
ZOOM_EXTENT: tuple[float, float] = (0.1, 10.0)
FIT_PADDING = 0.9
MAX_HEIGHT_FACTOR = 6
VALUE_PER_VIEWPORT = 10_000

PLOT_ID = "sankey"


@dataclass(frozen=True)
class Margin:
    top: int = 20
    right: int = 150
    bottom: int = 20
    left: int = 150


MARGIN = Margin()


@dataclass(frozen=True)
class Viewport:
    """Pixel size of the diagram container."""

    width: int
    height: int

    @property
    def inner_width(self) -> int:
        return max(1, self.width - MARGIN.left - MARGIN.right)

    @property
    def inner_height(self) -> int:
        return max(1, self.height - MARGIN.top - MARGIN.bottom)


@dataclass(frozen=True)
class FitTransform:
    translate_x: float
    translate_y: float
    scale: float

    @property
    def css(self) -> str:
        return f"translate({self.translate_x:.2f}px, {self.translate_y:.2f}px) scale({self.scale:.4f})"


def scaled_height(total_value: float, inner_height: float) -> float:
    """Layout height between one and six inner heights, driven by total flow."""
    by_value = total_value / VALUE_PER_VIEWPORT * inner_height
    return max(inner_height, min(inner_height * MAX_HEIGHT_FACTOR, by_value))


def clamp_scale(scale: float) -> float:
    low, high = ZOOM_EXTENT
    return min(high, max(low, scale))


def fit_transform(content_width: float, content_height: float, viewport: Viewport) -> FitTransform:
    """Initial pan/zoom that centres the content inside the margin box.

    Content is never scaled up; it is shrunk to fit and padded to 90%.
    Empty content gets the identity transform offset by the margins.
    """
    if content_width <= 0 or content_height <= 0:
        return FitTransform(translate_x=MARGIN.left, translate_y=MARGIN.top, scale=1.0)

    inner_w = viewport.inner_width
    inner_h = viewport.inner_height
    scale = clamp_scale(min(inner_w / content_width, inner_h / content_height, 1.0) * FIT_PADDING)
    return FitTransform(
        translate_x=MARGIN.left + (inner_w - content_width * scale) / 2,
        translate_y=MARGIN.top + (inner_h - content_height * scale) / 2,
        scale=scale,
    )


def hex_to_rgba(hex_color: str, alpha: float) -> str:
    value = hex_color.lstrip("#")
    r, g, b = (int(value[i : i + 2], 16) for i in (0, 2, 4))
    return f"rgba({r}, {g}, {b}, {alpha})"


def node_colors(graph: FlowGraph) -> dict[str, str]:
    return {node.id: CATEGORY10[i % len(CATEGORY10)] for i, node in enumerate(graph.nodes)}


def build_figure(graph: FlowGraph, viewport: Viewport) -> go.Figure:
    """Sankey figure for ``graph`` sized for ``viewport``."""
    index = {node.id: i for i, node in enumerate(graph.nodes)}
    names = {node.id: node.name for node in graph.nodes}
    colors = node_colors(graph)
    layout_height = scaled_height(graph.total_value, viewport.inner_height)

    sankey = go.Sankey(
        arrangement="fixed",
        valueformat=",",
        node=dict(
            pad=NODE_PADDING,
            thickness=NODE_THICKNESS,
            label=[node.name for node in graph.nodes],
            color=[hex_to_rgba(colors[node.id], NODE_OPACITY) for node in graph.nodes],
            line=dict(width=0),
            customdata=[[node.url or "", node.tooltip, "node"] for node in graph.nodes],
            hovertemplate="%{customdata[1]}: %{value:,}<extra></extra>",
        ),
        link=dict(
            source=[index[link.source] for link in graph.links],
            target=[index[link.target] for link in graph.links],
            value=[link.value for link in graph.links],
            color=[hex_to_rgba(colors[link.source], LINK_OPACITY) for link in graph.links],
            customdata=[[names[link.source], names[link.target], "link"] for link in graph.links],
            hovertemplate="%{customdata[0]} → %{customdata[1]}: %{value:,}<extra></extra>",
        ),
    )
    fig = go.Figure(data=[sankey])
    fig.update_layout(
        width=viewport.inner_width,
        height=round(layout_height),
        margin=dict(l=0, r=0, t=0, b=0),
        font=dict(size=10, family="sans-serif"),
        paper_bgcolor="rgba(0,0,0,0)",
    )
    return fig


# Runs after Plotly.newPlot; "{plot_id}" is substituted by plotly.
_CLICK_SCRIPT = """
var plot = document.getElementById('{plot_id}');
plot.on('plotly_click', function (event) {
  var point = event.points && event.points[0];
  if (!point || !point.customdata) return;
  if (point.customdata[2] === 'node' && point.customdata[0]) {
    window.open(point.customdata[0], '_blank');
  }
});
"""

_PAN_ZOOM_SCRIPT = """
(function () {
  var config = __CONFIG__;
  var container = document.getElementById('viewport');
  var stage = document.getElementById('stage');
  var state = {x: config.translateX, y: config.translateY, k: config.scale};
  var drag = null;

  function apply() {
    stage.style.transform = 'translate(' + state.x + 'px, ' + state.y + 'px) scale(' + state.k + ')';
  }

  container.addEventListener('wheel', function (e) {
    e.preventDefault();
    var rect = container.getBoundingClientRect();
    var px = e.clientX - rect.left;
    var py = e.clientY - rect.top;
    var k = Math.min(config.maxScale, Math.max(config.minScale, state.k * Math.pow(2, -e.deltaY * 0.002)));
    state.x = px - (px - state.x) * (k / state.k);
    state.y = py - (py - state.y) * (k / state.k);
    state.k = k;
    apply();
  }, {passive: false});

  container.addEventListener('mousedown', function (e) {
    drag = {x: e.clientX - state.x, y: e.clientY - state.y};
  });
  window.addEventListener('mousemove', function (e) {
    if (!drag) return;
    state.x = e.clientX - drag.x;
    state.y = e.clientY - drag.y;
    apply();
  });
  window.addEventListener('mouseup', function () { drag = null; });

  function syncSize() {
    var width = Math.round(container.clientWidth);
    var height = Math.round(container.clientHeight);
    if (width === 0 || height === 0) return;
    if (width === config.width && height === config.height) return;
    var url = new URL(window.location.href);
    url.searchParams.set('width', width);
    url.searchParams.set('height', height);
    window.location.replace(url.toString());
  }
  var resizeTimer = null;
  window.addEventListener('resize', function () {
    clearTimeout(resizeTimer);
    resizeTimer = setTimeout(syncSize, 200);
  });

  apply();
  syncSize();
})();
"""

_PAGE_STYLE = """
body { margin: 0; font-family: sans-serif; min-height: 100vh; display: flex; flex-direction: column; }
h1 { font-size: 1.5rem; font-weight: bold; padding: 1rem; margin: 0; text-align: center; }
.message { flex: 1; display: flex; align-items: center; justify-content: center; font-size: 1.125rem; }
.error { color: #dc2626; }
#viewport { flex: 1; width: 100%; overflow: hidden; position: relative; cursor: grab; }
#stage { transform-origin: 0 0; position: absolute; top: 0; left: 0; }
"""


def _page(title: str, body: str, head_extra: str = "") -> str:
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>{html.escape(title)}</title>
  {head_extra}
  <style>{_PAGE_STYLE}</style>
</head>
<body>
{body}
</body>
</html>
"""


def render_message_html(message: str, *, is_error: bool = False, refresh_seconds: int | None = None) -> str:
    """Full-page centred message (loading, error, empty states)."""
    css_class = "message error" if is_error else "message"
    head_extra = f'<meta http-equiv="refresh" content="{refresh_seconds}" />' if refresh_seconds else ""
    body = f'<div class="{css_class}"><p>{html.escape(message)}</p></div>'
    return _page("Flows distribution", body, head_extra)


def render_diagram_html(graph: FlowGraph, viewport: Viewport, title: str = "Flows distribution") -> str:
    """Full page with heading, zoomable Sankey and click-through nodes."""
    fig = build_figure(graph, viewport)
    transform = fit_transform(fig.layout.width, fig.layout.height, viewport)
    figure_html = fig.to_html(
        full_html=False,
        include_plotlyjs="cdn",
        div_id=PLOT_ID,
        post_script=_CLICK_SCRIPT,
        config={"displaylogo": False, "displayModeBar": False, "scrollZoom": False},
    )
    config = {
        "translateX": transform.translate_x,
        "translateY": transform.translate_y,
        "scale": transform.scale,
        "minScale": ZOOM_EXTENT[0],
        "maxScale": ZOOM_EXTENT[1],
        "width": viewport.width,
        "height": viewport.height,
    }
    body = f"""<h1>{html.escape(title)}</h1>
<div id="viewport">
  <div id="stage" style="transform: {transform.css}">
{figure_html}
  </div>
</div>
<script>{_PAN_ZOOM_SCRIPT.replace("__CONFIG__", json.dumps(config))}</script>"""
    return _page(title, body)
