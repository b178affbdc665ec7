r"""Template rendering.

Templates use a small control-flow language:

    {var} / {{var}}                     interpolation (dotted paths allowed)
    {{name(arg, ...)}}                  function call
    {{#if expr}}...{{#else}}...{{/if}}  conditional
    {{#each array as item}}...{{/each}} loop
    {{#block name}}...{{/block}}        region a child template can override
    {{#section name}}...{{/section}}    region a child can replace or extend

Basic usage:
    from promptforge.templating import Template

    template = Template(
        "{{#each items as item}}{item}{{#if item_last}}.{{#else}}, {{/if}}{{/each}}"
    )
    template.render({"items": ["a", "b", "c"]})  # "a, b, c."
"""

from ._analysis import (
    ConditionalResult,
    LoopResult,
    TemplateAnalysis,
    TemplateValidation,
)
from ._bindings import (
    MISSING,
    Scope,
    Value,
    is_truthy,
    merge_bindings,
    resolve_path,
    to_number,
    to_text,
)
from ._blocks import (
    RegionKind,
    extract_blocks,
    find_regions,
    replace_regions,
    splice_blocks,
)
from ._expression import ExpressionEvaluator, compare, evaluate_condition
from ._frontmatter import (
    YAMLFrontmatter,
    YAMLValue,
    load_frontmatter_file,
    parse_frontmatter,
)
from ._functions import (
    BUILTIN_FUNCTIONS,
    FunctionRegistry,
    TemplateFunction,
    create_function_registry,
)
from ._loader import load_template
from ._nodes import (
    CallNode,
    ConditionalNode,
    LoopNode,
    Node,
    RegionNode,
    TextNode,
    VariableNode,
)
from ._parser import parse_template, split_arguments
from ._template import Template, TemplateFlags, parse_literal, resolve_argument

__all__ = [
    "BUILTIN_FUNCTIONS",
    "MISSING",
    "CallNode",
    "ConditionalNode",
    "ConditionalResult",
    "ExpressionEvaluator",
    "FunctionRegistry",
    "LoopNode",
    "LoopResult",
    "Node",
    "RegionKind",
    "RegionNode",
    "Scope",
    "Template",
    "TemplateAnalysis",
    "TemplateFlags",
    "TemplateFunction",
    "TemplateValidation",
    "TextNode",
    "Value",
    "VariableNode",
    "YAMLFrontmatter",
    "YAMLValue",
    "compare",
    "create_function_registry",
    "evaluate_condition",
    "extract_blocks",
    "find_regions",
    "is_truthy",
    "load_frontmatter_file",
    "load_template",
    "merge_bindings",
    "parse_frontmatter",
    "parse_literal",
    "parse_template",
    "replace_regions",
    "resolve_argument",
    "resolve_path",
    "split_arguments",
    "splice_blocks",
    "to_number",
    "to_text",
]
