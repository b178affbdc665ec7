"""Named region extraction and splicing.

These helpers work on template source text. Region bodies are replaced in
place and the ``{{#block}}``/``{{#section}}`` markers are kept, so a spliced
template can itself serve as a base for further inheritance.
"""

from collections.abc import Callable, Mapping
from typing import Literal

from ._nodes import RegionNode, iter_regions
from ._parser import parse_template

type RegionKind = Literal["block", "section"]


def find_regions(source: str, kind: RegionKind | None = None) -> list[RegionNode]:
    """Return the regions in ``source`` in source order.

    Args:
        source: Template text.
        kind: Restrict to ``"block"`` or ``"section"`` regions.

    Raises:
        TemplateSyntaxError: If the source has unbalanced markers.
    """
    regions = iter_regions(parse_template(source))
    if kind is None:
        return regions
    return [region for region in regions if region.kind == kind]


def extract_blocks(source: str) -> dict[str, str]:
    """Map each ``{{#block name}}`` in ``source`` to its raw body text.

    When a name appears more than once, the last occurrence wins.
    """
    return {
        region.name: source[region.body_start : region.body_end]
        for region in find_regions(source, "block")
    }


def replace_regions(
    source: str,
    kind: RegionKind,
    replace: Callable[[RegionNode, str], str | None],
) -> tuple[str, list[str]]:
    """Rewrite region bodies in ``source``.

    Args:
        source: Template text.
        kind: Which region markers to visit.
        replace: Called with each region and its current body; returns the
            new body, or None to leave the region untouched. Regions nested
            inside a replaced region are not visited.

    Returns:
        The rewritten source and the names of the replaced regions, in
        source order (a name repeats if it occurs more than once).
    """
    pieces: list[str] = []
    replaced: list[str] = []
    cursor = 0

    for region in find_regions(source, kind):
        if region.start < cursor:
            continue
        body = source[region.body_start : region.body_end]
        new_body = replace(region, body)
        if new_body is None:
            continue
        pieces.append(source[cursor : region.body_start])
        pieces.append(new_body)
        cursor = region.body_end
        replaced.append(region.name)

    pieces.append(source[cursor:])
    return "".join(pieces), replaced


def splice_blocks(
    base_source: str,
    overrides: Mapping[str, str],
) -> tuple[str, list[str]]:
    """Replace matching ``{{#block}}`` bodies in a base with override content.

    Args:
        base_source: The base template text.
        overrides: Block name to replacement content.

    Returns:
        The spliced source and the override names that matched no block in
        the base.
    """
    spliced, replaced = replace_regions(
        base_source, "block", lambda region, _body: overrides.get(region.name)
    )
    unmatched = [name for name in overrides if name not in replaced]
    return spliced, unmatched
