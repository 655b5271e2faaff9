"""Prompt builders."""

from __future__ import annotations

from typing import Dict

from .llm.types import GenerationRequest, SectionKind

SECTION_INSTRUCTIONS: Dict[SectionKind, str] = {
    SectionKind.LEARNING_OBJECTIVES: "List 3-5 concrete, measurable learning objectives.",
    SectionKind.PREREQUISITES: "List 3-5 things the student must know before starting.",
    SectionKind.FEATURES_USED: "Describe the engine features used, highlighting version-specific ones.",
    SectionKind.IMPLEMENTATION_STEPS: "Explain the implementation step by step.",
    SectionKind.BLUEPRINT_IMPLEMENTATION: "Describe the Blueprint nodes, how they connect, and what each does.",
    SectionKind.SETTINGS: "List the required settings with recommended values.",
    SectionKind.TROUBLESHOOTING: "List 3-5 common problems with cause and fix.",
    SectionKind.ADVANCED_CHALLENGES: "Suggest 2-3 follow-up challenges.",
}


def build_system_prompt(target_version: str) -> str:
    return (
        f"You are an Unreal Engine {target_version} expert writing lesson plans for high-school students. "
        "Be clear, incremental, and practical."
    )


def build_section_prompt(request: GenerationRequest) -> str:
    lines = [f"Theme: {request.theme}", f"Target version: UE{request.target_version}", ""]
    if request.reference_snippets:
        lines.append("Latest information:")
        lines.extend(request.reference_snippets)
        lines.append("")
    instruction = SECTION_INSTRUCTIONS.get(
        request.section_kind,
        f"Write the '{request.section_kind.value}' section.",
    )
    lines.append(instruction)
    return "\n".join(lines)


def build_prompts(request: GenerationRequest) -> tuple[str, str]:
    """Returns (system_prompt, user_prompt) for one lesson section."""
    return build_system_prompt(request.target_version), build_section_prompt(request)
