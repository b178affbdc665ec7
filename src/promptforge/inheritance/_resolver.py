"""Block and section splicing for child templates."""

import warnings
from typing import TYPE_CHECKING

from promptforge.exceptions import AmbiguousBaseBlockWarning
from promptforge.templating import Template, TemplateFlags, replace_regions
from promptforge.utils import get_logger

from ._models import BaseTemplate, ChildTemplateOptions, SectionMode, SectionOverride

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from promptforge.templating import RegionNode


def merge_section(body: str, override: SectionOverride) -> str:
    """Combine an existing section body with an override."""
    match override.mode:
        case SectionMode.PREPEND:
            return f"{override.content}\n{body}"
        case SectionMode.APPEND:
            return f"{body}\n{override.content}"
        case _:
            return override.content


def apply_overrides(
    source: str,
    child: ChildTemplateOptions,
    logger: "FilteringBoundLogger",  # noqa: UP037
) -> str:
    """Apply a child's block and section overrides to base template text.

    Every base block whose name the child overrides is fully replaced; a
    name occurring more than once in the base is replaced at each
    occurrence. Overrides for blocks the base does not declare are appended
    as new blocks and reported with AmbiguousBaseBlockWarning.

    Returns:
        The spliced source, with region markers kept.
    """

    def replace_block(region: "RegionNode", _body: str) -> str | None:  # noqa: UP037
        override = child.blocks.get(region.name)
        return None if override is None else override.content

    def merge(region: "RegionNode", body: str) -> str | None:  # noqa: UP037
        override = child.sections.get(region.name)
        return None if override is None else merge_section(body, override)

    spliced, replaced = replace_regions(source, "block", replace_block)

    for name, override in child.blocks.items():
        if name in replaced:
            continue
        msg = f"Block '{name}' is not declared by the base template; appending it"
        warnings.warn(msg, AmbiguousBaseBlockWarning, stacklevel=3)
        logger.warning("block_not_in_base", child=child.name, block=name)
        spliced += f"\n{{{{#block {name}}}}}{override.content}{{{{/block}}}}"

    spliced, merged = replace_regions(spliced, "section", merge)

    unmatched = [name for name in child.sections if name not in merged]
    if unmatched:
        logger.warning("section_not_in_base", child=child.name, sections=unmatched)

    return spliced


def resolve_inheritance(
    base: BaseTemplate | str,
    child: ChildTemplateOptions,
    logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
) -> Template:
    """Build the Template a child produces from its base.

    Bindings and functions are merged with the child's taking precedence.
    Required blocks the child leaves alone keep the base's default content
    and are logged as a warning.

    Args:
        base: The base template, or bare base template text.
        child: The child's overrides.
        logger: Logger for diagnostics.

    Returns:
        A Template with all render stages enabled.
    """
    if isinstance(base, str):
        base = BaseTemplate(name="", source=base)
    logger = logger if logger is not None else get_logger("inheritance")

    missing = [name for name in base.required_blocks if name not in child.blocks]
    if missing:
        logger.warning(
            "required_blocks_not_overridden",
            base=base.name,
            child=child.name,
            blocks=missing,
        )

    source = apply_overrides(base.source, child, logger)
    logger.debug(
        "child_template_resolved",
        base=base.name,
        child=child.name,
        blocks=list(child.blocks),
        sections=list(child.sections),
    )

    return Template(
        source=source,
        bindings={**base.default_bindings, **child.variables},
        functions={**base.functions, **child.functions},
        flags=TemplateFlags(conditionals=True, loops=True, inheritance=True),
        escape_html=base.escape_html if child.escape_html is None else child.escape_html,
        preserve_whitespace=(
            base.preserve_whitespace
            if child.preserve_whitespace is None
            else child.preserve_whitespace
        ),
        logger=logger,
    )
