"""Template scanner and parser.

This module scans template text for the control-block markers and builds a
tree of nodes. Scanning is a single left-to-right pass over one token
pattern; nesting is tracked with an explicit stack of open blocks, so nested
conditionals and loops pair with their own closing markers.

Supported markers:
    {var} / {{var}}                     interpolation (dotted paths allowed)
    {{name(arg, ...)}}                  function call
    {{#if expr}}...{{#else}}...{{/if}}  conditional
    {{#each array as item}}...{{/each}} loop
    {{#block name}}...{{/block}}        overridable region
    {{#section name}}...{{/section}}    mergeable region
"""

import re
from dataclasses import dataclass, field

from promptforge.exceptions import TemplateSyntaxError

from ._nodes import (
    CallNode,
    ConditionalNode,
    LoopNode,
    Node,
    RegionNode,
    TextNode,
    VariableNode,
)

_NAME = r"[A-Za-z_][A-Za-z0-9_]*"
_PATH = _NAME + r"(?:\.[A-Za-z0-9_]+)*"
_REGION_NAME = r"[A-Za-z0-9_][A-Za-z0-9_.-]*"

_TOKEN_PATTERN = re.compile(
    r"(?P<if_open>\{\{#if\s+(?P<condition>[^}]+?)\s*\}\})"
    r"|(?P<else>\{\{#else\}\})"
    r"|(?P<if_close>\{\{/if\}\})"
    r"|(?P<each_open>\{\{#each\s+(?P<array>" + _PATH + r")\s+as\s+"
    r"(?P<item>" + _NAME + r")\s*\}\})"
    r"|(?P<each_close>\{\{/each\}\})"
    r"|(?P<region_open>\{\{#(?P<region_kind>block|section)\s+"
    r"(?P<region_name>" + _REGION_NAME + r")\s*\}\})"
    r"|(?P<region_close>\{\{/(?P<close_kind>block|section)\}\})"
    r"|(?P<call>\{\{(?P<function>" + _NAME + r")\((?P<arguments>.*?)\)\}\})"
    r"|(?P<double_var>\{\{(?P<double_path>" + _PATH + r")\}\})"
    r"|(?P<single_var>\{(?P<single_path>" + _PATH + r")\})"
)

_CLOSE_MARKERS = {
    "if": "{{/if}}",
    "each": "{{/each}}",
    "block": "{{/block}}",
    "section": "{{/section}}",
}


@dataclass(slots=True)
class _Frame:
    """An open block awaiting its closing marker."""

    kind: str
    start: int
    body_start: int = 0
    nodes: list[Node] = field(default_factory=list)
    true_nodes: list[Node] | None = None
    condition: str = ""
    array_name: str = ""
    item_name: str = ""
    name: str = ""


def _append_text(nodes: list[Node], text: str) -> None:
    if not text:
        return
    if nodes and isinstance(nodes[-1], TextNode):
        nodes[-1] = TextNode(nodes[-1].text + text)
    else:
        nodes.append(TextNode(text))


def split_arguments(arguments: str) -> tuple[str, ...]:
    """Split a function argument list on commas outside quoted strings.

    Args:
        arguments: The text between the call parentheses.

    Returns:
        Stripped argument texts; quotes are kept so literals can be told
        apart from names.

    Example:
        >>> split_arguments('team, ", "')
        ('team', '", "')
    """
    if not arguments.strip():
        return ()

    parts: list[str] = []
    current: list[str] = []
    quote: str | None = None

    for char in arguments:
        if quote is None and char in "\"'":
            quote = char
            current.append(char)
        elif char == quote:
            quote = None
            current.append(char)
        elif char == "," and quote is None:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return tuple(parts)


def _close(frame: _Frame, end: int, body_end: int) -> Node:
    """Build the node for a frame whose closing marker was just read."""
    match frame.kind:
        case "if":
            if frame.true_nodes is not None:
                return ConditionalNode(
                    condition=frame.condition,
                    true_body=tuple(frame.true_nodes),
                    false_body=tuple(frame.nodes),
                )
            return ConditionalNode(condition=frame.condition, true_body=tuple(frame.nodes))
        case "each":
            return LoopNode(
                array_name=frame.array_name,
                item_name=frame.item_name,
                body=tuple(frame.nodes),
            )
        case _:
            return RegionNode(
                kind=frame.kind,
                name=frame.name,
                body=tuple(frame.nodes),
                start=frame.start,
                end=end,
                body_start=frame.body_start,
                body_end=body_end,
            )


def parse_template(
    source: str,
    *,
    conditionals: bool = True,
    loops: bool = True,
) -> tuple[Node, ...]:
    """Parse template source into a tree of nodes.

    Args:
        source: Template text.
        conditionals: When False, if/else markers are kept as literal text.
        loops: When False, each markers are kept as literal text.

    Returns:
        The top-level nodes of the template.

    Raises:
        TemplateSyntaxError: If block markers are unbalanced, or a loop reuses
            its array name as the item name.
    """
    stack: list[_Frame] = [_Frame(kind="root", start=0)]
    position = 0

    for match in _TOKEN_PATTERN.finditer(source):
        nodes = stack[-1].nodes
        _append_text(nodes, source[position : match.start()])
        position = match.end()
        token = match.group(0)

        if match.group("if_open") is not None:
            if not conditionals:
                _append_text(nodes, token)
                continue
            stack.append(
                _Frame(
                    kind="if",
                    start=match.start(),
                    body_start=match.end(),
                    condition=match.group("condition").strip(),
                )
            )

        elif match.group("else") is not None:
            if not conditionals:
                _append_text(nodes, token)
                continue
            frame = stack[-1]
            if frame.kind != "if" or frame.true_nodes is not None:
                msg = "Unexpected {{#else}} outside of an {{#if}} block"
                raise TemplateSyntaxError(msg, position=match.start())
            frame.true_nodes = frame.nodes
            frame.nodes = []

        elif match.group("each_open") is not None:
            if not loops:
                _append_text(nodes, token)
                continue
            array_name = match.group("array")
            item_name = match.group("item")
            if item_name == array_name:
                msg = f"Loop item name '{item_name}' must differ from the array name"
                raise TemplateSyntaxError(msg, position=match.start())
            stack.append(
                _Frame(
                    kind="each",
                    start=match.start(),
                    body_start=match.end(),
                    array_name=array_name,
                    item_name=item_name,
                )
            )

        elif match.group("region_open") is not None:
            stack.append(
                _Frame(
                    kind=match.group("region_kind"),
                    start=match.start(),
                    body_start=match.end(),
                    name=match.group("region_name"),
                )
            )

        elif (
            match.group("if_close") is not None
            or match.group("each_close") is not None
            or match.group("region_close") is not None
        ):
            if match.group("if_close") is not None:
                kind = "if"
                if not conditionals:
                    _append_text(nodes, token)
                    continue
            elif match.group("each_close") is not None:
                kind = "each"
                if not loops:
                    _append_text(nodes, token)
                    continue
            else:
                kind = match.group("close_kind")

            frame = stack[-1]
            if frame.kind != kind:
                msg = f"Unexpected {_CLOSE_MARKERS[kind]}"
                if frame.kind != "root":
                    msg += f" while {{{{#{frame.kind}}}}} at offset {frame.start} is open"
                raise TemplateSyntaxError(msg, position=match.start())
            stack.pop()
            stack[-1].nodes.append(_close(frame, match.end(), match.start()))

        elif match.group("call") is not None:
            nodes.append(
                CallNode(
                    name=match.group("function"),
                    arguments=split_arguments(match.group("arguments")),
                    raw=token,
                )
            )

        elif match.group("double_var") is not None:
            nodes.append(VariableNode(path=match.group("double_path"), raw=token))

        else:
            nodes.append(VariableNode(path=match.group("single_path"), raw=token))

    if len(stack) > 1:
        frame = stack[-1]
        msg = (
            f"Unclosed {{{{#{frame.kind}}}}} at offset {frame.start}; "
            f"expected {_CLOSE_MARKERS[frame.kind]}"
        )
        raise TemplateSyntaxError(msg, position=frame.start)

    root = stack[0].nodes
    _append_text(root, source[position:])
    return tuple(root)
