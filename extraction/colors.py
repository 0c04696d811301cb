"""Color table construction."""

from typing import List, Sequence

from extraction.models import ColorDefinition
from infographic.models import ArkColorEntry

BASE_COLOR_FIRST_ID = 1
DYE_COLOR_FIRST_ID = 201


def build_color_table(
    color_definitions: Sequence[ColorDefinition],
    dye_definitions: Sequence[ColorDefinition],
) -> List[ArkColorEntry]:
    """
    Assign IDs to base colors and dyes and return them as one flat table.

    IDs are positional: base colors get 1..N and dyes get 201..200+M, both in
    input order. Reordering the upstream definitions renumbers them.
    """
    colors: List[ArkColorEntry] = []

    for offset, (name, rgba) in enumerate(color_definitions):
        colors.append(
            ArkColorEntry(id=BASE_COLOR_FIRST_ID + offset, name=name, linear_rgba=rgba, is_dye=False)
        )

    for offset, (name, rgba) in enumerate(dye_definitions):
        colors.append(
            ArkColorEntry(id=DYE_COLOR_FIRST_ID + offset, name=name, linear_rgba=rgba, is_dye=True)
        )

    return colors
