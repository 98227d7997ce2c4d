"""
Prompt templates. All prompts live here.

Rules:
- Never hardcode prompts in Python
- Prompts must be versioned by filename
- Prompts must be editable without code changes
"""

from sourcegate.prompts.loader import load_prompt, render_prompt

NEUTRAL_SYSTEM_PROMPT = "neutral_system_v1"
CORRECTIVE_RETRY_PROMPT = "corrective_retry_v1"

__all__ = ["CORRECTIVE_RETRY_PROMPT", "NEUTRAL_SYSTEM_PROMPT", "load_prompt", "render_prompt"]
