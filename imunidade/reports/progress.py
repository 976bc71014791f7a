from __future__ import annotations

import math

from imunidade.tools.estimate import ProgressRatios

BAR_WIDTH = 20
FILLED = "▓"
EMPTY = "░"


def format_percent(ratio: float) -> str:
    """Percentual com uma casa e vírgula decimal: 0.1234 -> '12,3%'."""
    return f"{ratio * 100:.1f}".replace(".", ",") + "%"


def render_bar(ratio: float, width: int = BAR_WIDTH) -> str:
    """
    Barra de largura fixa + percentual. O preenchimento é limitado a [0, width];
    o percentual exibido não é limitado (pode passar de 100,0%).
    """
    filled = min(max(math.floor(ratio * width), 0), width)
    return f"{FILLED * filled}{EMPTY * (width - filled)} {format_percent(ratio)}"


def render_progress(ratios: ProgressRatios, width: int = BAR_WIDTH) -> str:
    """Duas linhas: 1ª dose (ou única) e 2ª dose (ou única)."""
    return "\n".join(
        [render_bar(ratios.first, width), render_bar(ratios.second, width)]
    )
