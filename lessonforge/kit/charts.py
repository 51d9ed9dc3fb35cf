"""
Small SVG charts for lesson modules (the ``lessonkit.charts`` namespace).

Charts take a list of dicts, like a table of rows, and the keys to plot::

    BarChart(data=[{"name": "1/2", "value": 0.5}], x_key="name", y_key="value")
"""

import math
from typing import Any, Dict, List, Mapping, Sequence

from lessonforge.kit.ui import Element

PALETTE = ("#93c5fd", "#f9a8d4", "#86efac", "#fde68a", "#c4b5fd", "#fdba74")


def _number(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _frame(width: int, height: int, children: List[Element], class_name: str = None) -> Element:
    props = {
        "xmlns": "http://www.w3.org/2000/svg",
        "width": width,
        "height": height,
        "view_box": f"0 0 {width} {height}",
        "role": "img",
    }
    if class_name:
        props["class_name"] = class_name
    return Element("svg", props, tuple(children))


def _empty(width: int, height: int, class_name: str = None) -> Element:
    label = Element("text", {"x": width / 2, "y": height / 2, "text_anchor": "middle", "fill": "#6b7280"}, ("No data",))
    return _frame(width, height, [label], class_name)


def _label(x: float, y: float, text: Any) -> Element:
    return Element("text", {"x": round(x, 2), "y": round(y, 2), "text_anchor": "middle", "font_size": 11, "fill": "#374151"}, (str(text),))


def BarChart(data: Sequence[Mapping[str, Any]] = (), x_key: str = "name", y_key: str = "value",
             width: int = 400, height: int = 240, color: str = PALETTE[0], class_name: str = None,
             **_ignored: Any) -> Element:
    rows = list(data or [])
    if not rows:
        return _empty(width, height, class_name)
    padding = 28
    values = [_number(row.get(y_key)) for row in rows]
    top = max(max(values), 0.0) or 1.0
    slot = (width - 2 * padding) / len(rows)
    bar_width = max(slot * 0.7, 1.0)
    chart_height = height - 2 * padding
    children = [Element("line", {"x1": padding, "y1": height - padding, "x2": width - padding, "y2": height - padding, "stroke": "#9ca3af"})]
    for index, (row, value) in enumerate(zip(rows, values)):
        bar_height = chart_height * max(value, 0.0) / top
        x = padding + index * slot + (slot - bar_width) / 2
        y = height - padding - bar_height
        children.append(Element("rect", {
            "x": round(x, 2), "y": round(y, 2), "width": round(bar_width, 2), "height": round(bar_height, 2),
            "fill": row.get("color", color), "rx": 4,
        }))
        children.append(_label(x + bar_width / 2, height - padding + 16, row.get(x_key, "")))
        children.append(_label(x + bar_width / 2, y - 6, row.get(y_key, "")))
    return _frame(width, height, children, class_name)


def LineChart(data: Sequence[Mapping[str, Any]] = (), x_key: str = "name", y_key: str = "value",
              width: int = 400, height: int = 240, color: str = "#60a5fa", class_name: str = None,
              **_ignored: Any) -> Element:
    rows = list(data or [])
    if not rows:
        return _empty(width, height, class_name)
    padding = 28
    values = [_number(row.get(y_key)) for row in rows]
    low, high = min(values), max(values)
    span = (high - low) or 1.0
    step = (width - 2 * padding) / max(len(rows) - 1, 1)
    points = []
    for index, value in enumerate(values):
        x = padding + index * step
        y = height - padding - (height - 2 * padding) * (value - low) / span
        points.append((round(x, 2), round(y, 2)))
    children = [
        Element("line", {"x1": padding, "y1": height - padding, "x2": width - padding, "y2": height - padding, "stroke": "#9ca3af"}),
        Element("polyline", {"points": " ".join(f"{x},{y}" for x, y in points), "fill": "none", "stroke": color, "stroke_width": 2}),
    ]
    for (x, y), row in zip(points, rows):
        children.append(Element("circle", {"cx": x, "cy": y, "r": 3, "fill": color}))
        children.append(_label(x, height - padding + 16, row.get(x_key, "")))
    return _frame(width, height, children, class_name)


def PieChart(data: Sequence[Mapping[str, Any]] = (), name_key: str = "name", value_key: str = "value",
             size: int = 240, colors: Sequence[str] = PALETTE, class_name: str = None,
             **_ignored: Any) -> Element:
    rows = [row for row in (data or []) if _number(row.get(value_key)) > 0]
    if not rows:
        return _empty(size, size, class_name)
    total = sum(_number(row.get(value_key)) for row in rows)
    radius = size / 2 - 8
    center = size / 2
    children = []
    angle = -math.pi / 2
    for index, row in enumerate(rows):
        share = _number(row.get(value_key)) / total
        fill = row.get("color", colors[index % len(colors)])
        if share >= 1.0:
            children.append(Element("circle", {"cx": center, "cy": center, "r": radius, "fill": fill}))
            break
        end = angle + share * 2 * math.pi
        x1, y1 = center + radius * math.cos(angle), center + radius * math.sin(angle)
        x2, y2 = center + radius * math.cos(end), center + radius * math.sin(end)
        large_arc = 1 if share > 0.5 else 0
        path = (f"M{center:.2f},{center:.2f} L{x1:.2f},{y1:.2f} "
                f"A{radius:.2f},{radius:.2f} 0 {large_arc} 1 {x2:.2f},{y2:.2f} Z")
        children.append(Element("path", {"d": path, "fill": fill}, (Element("title", {}, (str(row.get(name_key, "")),)),)))
        angle = end
    return _frame(size, size, children, class_name)


def exports() -> Dict[str, Any]:
    return {
        "BarChart": BarChart,
        "LineChart": LineChart,
        "PieChart": PieChart,
        "PALETTE": PALETTE,
    }
