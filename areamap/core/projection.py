"""
Render projection.

Pure functions turning (fetched areas, drawn areas, selection, clicked id)
into the list the map widget draws. Nothing here is stored on the areas, so
the output can be re-derived from current state at any time.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from areamap.core.constants import AREA_STYLE_CLICKED, AREA_STYLE_DEFAULT, AREA_STYLE_SELECTED
from areamap.core.models.area import Area


@dataclass(frozen=True)
class RenderItem:
    area: Area
    style: Dict
    selected: bool = False
    clicked: bool = False


def merge_areas(fetched: List[Area], drawn: List[Area]) -> List[Area]:
    """
    Combine fetched and drawn areas without duplicates.

    Areas sharing an id collapse into one entry; the drawn instance wins and
    takes the slot of the fetched one. Areas without an id are always kept.
    """
    drawn_by_id = {a.id: a for a in drawn if a.id is not None}
    merged = []
    seen_ids = set()

    for a in fetched:
        if a.id is None:
            merged.append(a)
            continue
        if a.id in seen_ids:
            continue
        seen_ids.add(a.id)
        merged.append(drawn_by_id.get(a.id, a))

    for a in drawn:
        if a.id is None:
            merged.append(a)
        elif a.id not in seen_ids:
            seen_ids.add(a.id)
            merged.append(a)
    return merged


def style_for(area: Area, selection, clicked_id: Optional[int]) -> Dict:
    """
    Style of one area: clicked > selected > the area's own hints > default.
    """
    if clicked_id is not None and area.id == clicked_id:
        return dict(AREA_STYLE_CLICKED)
    if selection is not None and selection.contains(area):
        return dict(AREA_STYLE_SELECTED)
    style = dict(AREA_STYLE_DEFAULT)
    style.update(area.style_hints)
    return style


def project(fetched: List[Area], drawn: List[Area], selection, clicked_id: Optional[int]) -> List[RenderItem]:
    items = []
    for area in merge_areas(fetched, drawn):
        is_clicked = clicked_id is not None and area.id == clicked_id
        is_selected = selection is not None and selection.contains(area)
        items.append(RenderItem(area, style_for(area, selection, clicked_id), is_selected, is_clicked))
    return items
