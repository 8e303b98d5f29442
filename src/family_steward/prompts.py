"""Canned prompt templates offered to the host."""

from dataclasses import dataclass

from mcp.types import GetPromptResult, ListPromptsResult, Prompt, PromptMessage, TextContent

from family_steward.protocol import MethodNotFound


@dataclass(frozen=True)
class PromptTemplate:
    name: str
    summary: str
    description: str
    text: str

    def to_mcp(self) -> Prompt:
        return Prompt(name=self.name, description=self.summary, arguments=[])

    def render(self) -> GetPromptResult:
        return GetPromptResult(
            description=self.description,
            messages=[
                PromptMessage(
                    role="user",
                    content=TextContent(type="text", text=self.text),
                )
            ],
        )


ANALYZE_WEEK = PromptTemplate(
    name="analyze_week",
    summary="Analyze the family's week",
    description="Analyze the family's week for drifts and patterns",
    text="""\
Please analyze my family's week. First, read the family export data using read_family_export, then analyze it for drifts and patterns. Focus on:
1. Energy levels and trends
2. Connection patterns
3. Goal completion rates
4. Any drifts that need attention

Provide factual observations and practical suggestions.""",
)

SUGGEST_ACTIVITIES = PromptTemplate(
    name="suggest_activities",
    summary="Suggest bond-strengthening activities",
    description="Suggest bond-strengthening activities",
    text="""\
Based on my family's current patterns (read the export data first), suggest 3-5 bond-strengthening activities. Consider:
1. Current energy levels (suggest low-effort if energy is low)
2. Areas that need connection
3. Practical activities that fit our family size

Use write_suggestions to save your recommendations.""",
)

PROMPTS: dict[str, PromptTemplate] = {
    p.name: p for p in (ANALYZE_WEEK, SUGGEST_ACTIVITIES)
}


def list_prompts() -> ListPromptsResult:
    return ListPromptsResult(prompts=[p.to_mcp() for p in PROMPTS.values()])


def get_prompt(name: str) -> GetPromptResult:
    template = PROMPTS.get(name)
    if template is None:
        raise MethodNotFound(f"Unknown prompt: {name}")
    return template.render()
