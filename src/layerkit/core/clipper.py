"""Polygon kernel: boolean operations, offsets and containment trees.

Thin adapter over **pyclipper** (Python bindings for Angus Johnson's Clipper
library). Clipper works on integer coordinates, which is exactly the scaled
fixed-point space of the domain model, so results are deterministic.

Conventions:
- Inputs are flat lists of polygons; contours are CCW and holes CW, and the
  non-zero fill rule is used, so an ExPolygon's rings can be passed as-is
  (see ``to_polygons``).
- Outputs follow the same convention: CCW contours, CW holes.
- Degenerate rings (fewer than 3 points, zero area) are dropped silently.
- Kernel failures on malformed input raise ``GeometryError``.

References:
- pyclipper: https://github.com/fonttools/pyclipper
- Clipper library: http://www.angusj.com/delphi/clipper.php
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import pyclipper

from layerkit.domain import ExPolygon, Point, Polygon, Polyline
from layerkit.exceptions import GeometryError

# Offsets use mitred joins; sharp corners are bevelled beyond this many deltas
MITER_LIMIT = 3.0

Path = list[tuple[int, int]]


@dataclass
class PolyNode:
    """A node of a containment tree.

    Attributes:
        polygon: Ring of this node, CCW for outer nodes and CW for holes
        is_hole: True if the node is a hole of its parent
        children: Rings nested one level deeper
    """

    polygon: Polygon
    is_hole: bool
    children: list["PolyNode"] = field(default_factory=list)


def to_polygons(expolygons: Iterable[ExPolygon]) -> list[Polygon]:
    """Flatten ExPolygons into their contour and hole rings."""
    return [polygon for expolygon in expolygons for polygon in expolygon.polygons()]


def _to_path(polygon: Polygon | Polyline) -> Path:
    return [p.to_tuple() for p in polygon.points]


def _to_polygon(path: Sequence[Sequence[int]]) -> Polygon:
    return Polygon(points=[Point(int(x), int(y)) for x, y in path])


def _to_polyline(path: Sequence[Sequence[int]]) -> Polyline:
    return Polyline(points=[Point(int(x), int(y)) for x, y in path])


def _add_closed(clipper: pyclipper.Pyclipper, polygons: Iterable[Polygon], poly_type: int) -> None:
    for polygon in polygons:
        if len(polygon) < 3:
            continue
        try:
            clipper.AddPath(_to_path(polygon), poly_type, True)
        except pyclipper.ClipperException:
            # rings reduced to a line or a point carry no area
            continue


def _add_open(clipper: pyclipper.Pyclipper, polylines: Iterable[Polyline]) -> None:
    for polyline in polylines:
        if len(polyline) < 2:
            continue
        try:
            clipper.AddPath(_to_path(polyline), pyclipper.PT_SUBJECT, False)
        except pyclipper.ClipperException:
            continue


def _collect_expolygons(node: "pyclipper.PyPolyNode", result: list[ExPolygon]) -> None:
    """Append the ExPolygon rooted at an outer node, then its nested islands."""
    holes = [_to_polygon(child.Contour) for child in node.Childs]
    result.append(ExPolygon(contour=_to_polygon(node.Contour), holes=holes))
    for hole in node.Childs:
        for island in hole.Childs:
            _collect_expolygons(island, result)


def _tree_to_expolygons(tree: "pyclipper.PyPolyNode") -> list[ExPolygon]:
    result: list[ExPolygon] = []
    for node in tree.Childs:
        _collect_expolygons(node, result)
    return result


def _tree_to_polynodes(node: "pyclipper.PyPolyNode") -> list[PolyNode]:
    return [
        PolyNode(
            polygon=_to_polygon(child.Contour),
            is_hole=bool(child.IsHole),
            children=_tree_to_polynodes(child),
        )
        for child in node.Childs
    ]


def _execute(
    operation: str,
    clip_type: int,
    subject: Iterable[Polygon],
    clip: Iterable[Polygon],
    fill_type: int = pyclipper.PFT_NONZERO,
    tree: bool = False,
):
    clipper = pyclipper.Pyclipper()
    try:
        _add_closed(clipper, subject, pyclipper.PT_SUBJECT)
        _add_closed(clipper, clip, pyclipper.PT_CLIP)
        if tree:
            return clipper.Execute2(clip_type, fill_type, fill_type)
        return clipper.Execute(clip_type, fill_type, fill_type)
    except (pyclipper.ClipperException, ValueError, OverflowError, TypeError) as e:
        raise GeometryError(operation, str(e)) from e


def _inflate(polygons: Iterable[Polygon], safety_offset: float) -> list[Polygon]:
    polygons = list(polygons)
    if not safety_offset:
        return polygons
    return offset(polygons, safety_offset)


def union(polygons: Iterable[Polygon], safety_offset: float = 0.0) -> list[Polygon]:
    """Union of a polygon set."""
    paths = _execute("union", pyclipper.CT_UNION, _inflate(polygons, safety_offset), [])
    return [_to_polygon(p) for p in paths]


def union_ex(polygons: Iterable[Polygon], safety_offset: float = 0.0) -> list[ExPolygon]:
    """Union of a polygon set, as ExPolygons."""
    tree = _execute("union_ex", pyclipper.CT_UNION, _inflate(polygons, safety_offset), [], tree=True)
    return _tree_to_expolygons(tree)


def diff(subject: Iterable[Polygon], clip: Iterable[Polygon], safety_offset: float = 0.0) -> list[Polygon]:
    """Subject minus clip."""
    paths = _execute("diff", pyclipper.CT_DIFFERENCE, subject, _inflate(clip, safety_offset))
    return [_to_polygon(p) for p in paths]


def diff_ex(subject: Iterable[Polygon], clip: Iterable[Polygon], safety_offset: float = 0.0) -> list[ExPolygon]:
    """Subject minus clip, as ExPolygons."""
    tree = _execute(
        "diff_ex", pyclipper.CT_DIFFERENCE, subject, _inflate(clip, safety_offset), tree=True
    )
    return _tree_to_expolygons(tree)


def intersection(
    subject: Iterable[Polygon], clip: Iterable[Polygon], safety_offset: float = 0.0
) -> list[Polygon]:
    """Area covered by both subject and clip."""
    paths = _execute("intersection", pyclipper.CT_INTERSECTION, subject, _inflate(clip, safety_offset))
    return [_to_polygon(p) for p in paths]


def intersection_ex(
    subject: Iterable[Polygon], clip: Iterable[Polygon], safety_offset: float = 0.0
) -> list[ExPolygon]:
    """Area covered by both subject and clip, as ExPolygons.

    With a non-zero ``safety_offset`` the clip set is grown by that many
    scaled units first, so that subject pieces sharing an edge with the clip
    are not cut into slivers and adjacent results are merged.
    """
    tree = _execute(
        "intersection_ex",
        pyclipper.CT_INTERSECTION,
        subject,
        _inflate(clip, safety_offset),
        tree=True,
    )
    return _tree_to_expolygons(tree)


def intersection_pl(polylines: Iterable[Polyline], clip: Iterable[Polygon]) -> list[Polyline]:
    """Clip open polylines by a polygon set, keeping the inside pieces."""
    clipper = pyclipper.Pyclipper()
    try:
        _add_open(clipper, polylines)
        _add_closed(clipper, clip, pyclipper.PT_CLIP)
        tree = clipper.Execute2(
            pyclipper.CT_INTERSECTION, pyclipper.PFT_NONZERO, pyclipper.PFT_NONZERO
        )
    except (pyclipper.ClipperException, ValueError, OverflowError, TypeError) as e:
        raise GeometryError("intersection_pl", str(e)) from e
    return [_to_polyline(p) for p in pyclipper.OpenPathsFromPolyTree(tree) if len(p) >= 2]


def _offset_clipper(polygons: Iterable[Polygon], delta: float) -> pyclipper.PyclipperOffset | None:
    paths = [_to_path(p) for p in polygons if len(p) >= 3 and p.area() != 0]
    if not paths:
        return None
    pco = pyclipper.PyclipperOffset(miter_limit=MITER_LIMIT)
    pco.AddPaths(paths, pyclipper.JT_MITER, pyclipper.ET_CLOSEDPOLYGON)
    return pco


def offset(polygons: Iterable[Polygon], delta: float) -> list[Polygon]:
    """Grow (positive delta) or shrink (negative delta) a polygon set.

    Args:
        polygons: Rings to offset (CCW contours, CW holes)
        delta: Offset distance in scaled units

    Returns:
        Offset rings; empty when the set collapses
    """
    try:
        pco = _offset_clipper(polygons, delta)
        if pco is None:
            return []
        paths = pco.Execute(delta)
    except (pyclipper.ClipperException, ValueError, OverflowError, TypeError) as e:
        raise GeometryError("offset", str(e)) from e
    return [_to_polygon(p) for p in paths if len(p) >= 3]


def offset_ex(polygons: Iterable[Polygon], delta: float) -> list[ExPolygon]:
    """Offset a polygon set and return the result as ExPolygons."""
    try:
        pco = _offset_clipper(polygons, delta)
        if pco is None:
            return []
        tree = pco.Execute2(delta)
    except (pyclipper.ClipperException, ValueError, OverflowError, TypeError) as e:
        raise GeometryError("offset_ex", str(e)) from e
    return _tree_to_expolygons(tree)


def offset2(polygons: Iterable[Polygon], delta1: float, delta2: float) -> list[Polygon]:
    """Offset by delta1, then offset the result by delta2.

    Shrinking then growing removes features narrower than twice the first
    delta without the spikes a single offset leaves at concave vertices.
    """
    return offset(offset(polygons, delta1), delta2)


def offset2_ex(polygons: Iterable[Polygon], delta1: float, delta2: float) -> list[ExPolygon]:
    """Double offset returning ExPolygons."""
    return offset_ex(offset(polygons, delta1), delta2)


def noncollapsing_offset_ex(expolygons: Iterable[ExPolygon], delta: float) -> list[ExPolygon]:
    """Shrink ExPolygons, dropping the ones that would vanish.

    Each ExPolygon is offset on its own by ``delta`` (negative) reduced by one
    unit of rounding; pieces left without area are discarded instead of being
    returned as degenerate slivers.
    """
    result: list[ExPolygon] = []
    for expolygon in expolygons:
        for piece in offset_ex(expolygon.polygons(), delta + 1 if delta < 0 else delta):
            if len(piece.contour) >= 3 and piece.area() > 0:
                result.append(piece)
    return result


def union_pt(polygons: Iterable[Polygon]) -> list[PolyNode]:
    """Build the containment tree of a polygon set.

    The even-odd rule is used so that concentric rings of the same winding
    nest into each other instead of being merged: each ring becomes a node
    and rings inside it become its children, alternating outer/hole.

    Returns:
        Root nodes (outermost rings)
    """
    tree = _execute("union_pt", pyclipper.CT_UNION, polygons, [], fill_type=pyclipper.PFT_EVENODD, tree=True)
    return _tree_to_polynodes(tree)


def simplify_polygons(polygons: Iterable[Polygon], tolerance: float) -> list[Polygon]:
    """Douglas-Peucker simplify each ring, dropping rings that degenerate.

    Winding is preserved; rings whose simplification changes sign or loses
    all area are discarded.
    """
    result: list[Polygon] = []
    for polygon in polygons:
        if len(polygon) < 3:
            continue
        points = polygon.split_at_first_point().simplified(tolerance).points
        if len(points) > 1 and points[0] == points[-1]:
            points = points[:-1]
        candidate = Polygon(points=points)
        if len(candidate) < 3 or candidate.area() == 0:
            continue
        if (candidate.area() > 0) != (polygon.area() > 0):
            continue
        result.append(candidate)
    return result


def total_area(expolygons: Iterable[ExPolygon]) -> float:
    """Sum of filled areas in square scaled units."""
    return sum(expolygon.area() for expolygon in expolygons)
