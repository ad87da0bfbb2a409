"""Prompt composition helpers.

Prompts are assembled from optional blocks (role, instructions, feedback
structure, guidelines, context, user content); empty blocks are skipped and
the rest are separated by a blank line.
"""
from typing import Optional


def compose_prompt(
    role: Optional[str] = None,
    instructions: Optional[str] = None,
    feedback_structure: Optional[str] = None,
    guidelines: Optional[str] = None,
    context: Optional[str] = None,
    user_content: Optional[str] = None,
) -> str:
    parts = [role, instructions, feedback_structure, guidelines, context, user_content]
    return "\n\n".join(part.strip() for part in parts if part and part.strip())


def compose_system_prompt(
    role: str,
    instructions: str,
    feedback_structure: Optional[str] = None,
    guidelines: Optional[str] = None,
) -> str:
    return compose_prompt(
        role=role,
        instructions=instructions,
        feedback_structure=feedback_structure,
        guidelines=guidelines,
    )


def compose_user_prompt(context: Optional[str], user_content: str) -> str:
    return compose_prompt(context=context, user_content=user_content)
