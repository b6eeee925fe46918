"""
matplotlib drawing surface.

Replays the draw primitives produced by ``render2d.render_frame`` onto a
figure the size of the canvas and saves it as a PNG. Screen space has its
origin top-left with y pointing down, as on an HTML canvas.
"""

from __future__ import annotations

import os
from typing import Iterable, Optional

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
from matplotlib.patches import Circle as CirclePatch

from .presets import RenderStyle
from .render2d import Circle, Line, Primitive, Text

_VALIGN = {"middle": "center", "bottom": "bottom", "top": "top"}


def draw_primitives(
    primitives: Iterable[Primitive],
    outfile: str,
    *,
    width: float,
    height: float,
    style: Optional[RenderStyle] = None,
    title: str = "",
) -> str:
    """
    Draw ``primitives`` in order and write ``outfile``. Returns the path.
    """
    style = style or RenderStyle()

    fig, ax = plt.subplots(
        figsize=(width / style.dpi, height / style.dpi),
        dpi=style.dpi,
        facecolor=style.background_color,
    )
    ax.set_facecolor(style.background_color)
    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)
    ax.set_xticks([])
    ax.set_yticks([])
    ax.set_aspect("equal", "box")
    for spine in ax.spines.values():
        spine.set_visible(False)

    z = 1
    for p in primitives:
        if isinstance(p, Line):
            ax.plot(
                [p.start[0], p.end[0]],
                [p.start[1], p.end[1]],
                color=p.color,
                linewidth=p.width,
                solid_capstyle="round",
                zorder=z,
            )
        elif isinstance(p, Circle):
            ax.add_patch(CirclePatch(
                p.center,
                p.radius,
                facecolor=p.fill,
                edgecolor=p.stroke,
                linewidth=1.0,
                zorder=z,
            ))
        elif isinstance(p, Text):
            ax.text(
                p.position[0],
                p.position[1],
                p.text,
                fontsize=p.size,
                color=p.color,
                ha=p.align,
                va=_VALIGN.get(p.baseline, "center"),
                zorder=z,
            )
        z += 1

    if title:
        ax.set_title(title, fontsize=11, color=style.label_color, loc="left")

    parent = os.path.dirname(outfile)
    if parent:
        os.makedirs(parent, exist_ok=True)

    plt.tight_layout(pad=0.2)
    plt.savefig(outfile, dpi=style.dpi, facecolor=style.background_color)
    plt.close(fig)
    return outfile
