"""promptforge: prompt templates with control flow, inheritance and composition.

Example:
    >>> from promptforge import Template
    >>> Template("{{upper(name)}}").render({"name": "alice"})
    'ALICE'
"""

from promptforge.composition import (
    CompositionResult,
    CompositionRule,
    TemplateComposer,
    create_template_composer,
)
from promptforge.config import Config
from promptforge.exceptions import (
    AmbiguousBaseBlockWarning,
    BaseTemplateNotFoundError,
    CompositionError,
    ExpressionError,
    InheritanceError,
    MissingVariableError,
    NoApplicableTemplateError,
    NotIterableError,
    PromptForgeError,
    TemplateError,
    TemplateNotFoundError,
    TemplateSyntaxError,
    UnknownFunctionError,
)
from promptforge.inheritance import (
    BaseTemplate,
    BlockOverride,
    ChildTemplateOptions,
    InheritanceManager,
    SectionMode,
    SectionOverride,
    create_inheritance_manager,
    resolve_inheritance,
)
from promptforge.templating import (
    Template,
    TemplateAnalysis,
    TemplateFlags,
    evaluate_condition,
    load_template,
)

__all__ = [
    "AmbiguousBaseBlockWarning",
    "BaseTemplate",
    "BaseTemplateNotFoundError",
    "BlockOverride",
    "ChildTemplateOptions",
    "CompositionError",
    "CompositionResult",
    "CompositionRule",
    "Config",
    "ExpressionError",
    "InheritanceError",
    "InheritanceManager",
    "MissingVariableError",
    "NoApplicableTemplateError",
    "NotIterableError",
    "PromptForgeError",
    "SectionMode",
    "SectionOverride",
    "Template",
    "TemplateAnalysis",
    "TemplateComposer",
    "TemplateError",
    "TemplateFlags",
    "TemplateNotFoundError",
    "TemplateSyntaxError",
    "UnknownFunctionError",
    "create_inheritance_manager",
    "create_template_composer",
    "evaluate_condition",
    "load_template",
    "resolve_inheritance",
]
