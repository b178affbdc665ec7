"""Block tree node types produced by the template parser."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TextNode:
    """Literal template text."""

    text: str


@dataclass(frozen=True, slots=True)
class VariableNode:
    """A ``{name}`` or ``{{name}}`` interpolation token.

    Attributes:
        path: Dotted lookup path, e.g. ``task.name``.
        raw: The token exactly as written in the source.
    """

    path: str
    raw: str


@dataclass(frozen=True, slots=True)
class CallNode:
    """A ``{{name(arg, ...)}}`` function call.

    Attributes:
        name: Function name looked up in the function registry.
        arguments: Raw argument texts, split on top-level commas.
        raw: The token exactly as written in the source.
    """

    name: str
    arguments: tuple[str, ...]
    raw: str


@dataclass(frozen=True, slots=True)
class ConditionalNode:
    """An ``{{#if expr}}...{{#else}}...{{/if}}`` block."""

    condition: str
    true_body: "tuple[Node, ...]"
    false_body: "tuple[Node, ...]" = ()


@dataclass(frozen=True, slots=True)
class LoopNode:
    """An ``{{#each array as item}}...{{/each}}`` block."""

    array_name: str
    item_name: str
    body: "tuple[Node, ...]"


@dataclass(frozen=True, slots=True)
class RegionNode:
    """A named ``{{#block}}`` or ``{{#section}}`` region.

    Offsets index into the source the node was parsed from and are used by
    inheritance splicing; rendering only needs the body.

    Attributes:
        kind: Either ``"block"`` or ``"section"``.
        name: Region name.
        body: Parsed region content.
        start: Offset of the opening marker.
        end: Offset just past the closing marker.
        body_start: Offset just past the opening marker.
        body_end: Offset of the closing marker.
    """

    kind: str
    name: str
    body: "tuple[Node, ...]"
    start: int
    end: int
    body_start: int
    body_end: int


type Node = TextNode | VariableNode | CallNode | ConditionalNode | LoopNode | RegionNode


def iter_regions(nodes: tuple[Node, ...]) -> list[RegionNode]:
    """Return every region in ``nodes`` in source order, nested ones included."""
    regions: list[RegionNode] = []
    for node in nodes:
        match node:
            case RegionNode():
                regions.append(node)
                regions.extend(iter_regions(node.body))
            case ConditionalNode():
                regions.extend(iter_regions(node.true_body))
                regions.extend(iter_regions(node.false_body))
            case LoopNode():
                regions.extend(iter_regions(node.body))
            case _:
                pass
    return sorted(regions, key=lambda region: region.start)
