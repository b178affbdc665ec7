"""Stock base templates."""

from typing import TYPE_CHECKING

from ._manager import InheritanceManager
from ._models import BaseTemplate

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

_BASIC_PROMPT = """\
{{#section header}}
You are a helpful AI assistant.
{{/section}}

{{#section task}}
{{#block task_description}}
Please help with the following task:
{{/block}}
{{/section}}

{{#section content}}
{{#block main_content}}
{content}
{{/block}}
{{/section}}

{{#section instructions}}
{{#block instructions}}
Please provide a clear and helpful response.
{{/block}}
{{/section}}

{{#section footer}}
{{#block footer}}
Thank you for using our AI assistant.
{{/block}}
{{/section}}"""

_ANALYSIS_PROMPT = """\
{{#section header}}
You are an expert analyst with deep knowledge in {domain}.
{{/section}}

{{#section context}}
{{#block context}}
{{#if context}}
Context: {context}
{{/if}}
{{/block}}
{{/section}}

{{#section task}}
{{#block analysis_task}}
Please analyze the following {content_type}:
{{/block}}
{{/section}}

{{#section content}}
{{#block main_content}}
{content}
{{/block}}
{{/section}}

{{#section requirements}}
{{#block analysis_requirements}}
Focus on:
{{#each focus_areas as area}}
- {area}
{{/each}}
{{/block}}
{{/section}}

{{#section output}}
{{#block output_format}}
Provide your analysis in the following format:
1. Summary
2. Key findings
3. Recommendations
{{/block}}
{{/section}}"""

_CREATIVE_PROMPT = """\
{{#section header}}
You are a creative AI assistant specializing in {creative_domain}.
{{/section}}

{{#section inspiration}}
{{#block inspiration}}
{{#if inspiration_sources}}
Draw inspiration from: {inspiration_sources}
{{/if}}
{{/block}}
{{/section}}

{{#section task}}
{{#block creative_task}}
Create {creative_output_type} based on the following:
{{/block}}
{{/section}}

{{#section content}}
{{#block main_content}}
{content}
{{/block}}
{{/section}}

{{#section style}}
{{#block style_guide}}
Style requirements:
- Tone: {tone}
- Style: {style}
{{#if constraints}}
- Constraints: {constraints}
{{/if}}
{{/block}}
{{/section}}

{{#section output}}
{{#block creative_output}}
Please provide your creative response below:
{{/block}}
{{/section}}"""


def create_common_base_templates() -> list[BaseTemplate]:
    """Return the stock ``basic_prompt``, ``analysis_prompt`` and ``creative_prompt`` bases."""
    return [
        BaseTemplate(
            name="basic_prompt",
            source=_BASIC_PROMPT,
            description="Basic prompt template with standard sections",
            default_bindings={"content": "Please specify the content to process"},
            required_blocks=("main_content",),
            optional_blocks=("task_description", "instructions", "footer"),
        ),
        BaseTemplate(
            name="analysis_prompt",
            source=_ANALYSIS_PROMPT,
            description="Template for analytical tasks",
            default_bindings={
                "domain": "general analysis",
                "content_type": "data",
                "focus_areas": ["key insights", "patterns", "recommendations"],
            },
            required_blocks=("main_content", "analysis_task"),
            optional_blocks=("context", "analysis_requirements", "output_format"),
        ),
        BaseTemplate(
            name="creative_prompt",
            source=_CREATIVE_PROMPT,
            description="Template for creative tasks",
            default_bindings={
                "creative_domain": "content creation",
                "creative_output_type": "content",
                "tone": "engaging",
                "style": "creative",
            },
            required_blocks=("main_content", "creative_task"),
            optional_blocks=("inspiration", "style_guide", "creative_output"),
        ),
    ]


def create_inheritance_manager(
    logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
) -> InheritanceManager:
    """Create a manager with the stock base templates registered."""
    manager = InheritanceManager(logger)
    for template in create_common_base_templates():
        manager.register_base_template(template)
    return manager
