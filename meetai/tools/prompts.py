"""Prompt templates sent to the host LLM."""

from __future__ import annotations

OPTIMIZE_TRANSCRIPT = """Clean up the following meeting transcript: fix misrecognised words, \
add punctuation and make sentences read naturally. Keep the speaker labels exactly as they \
are (for example S0:, S1:).

{transcript}

Output only the cleaned transcript, without any extra commentary."""

SUMMARY = """Write professional meeting minutes from the transcript below.

Requirements:
1. **Meeting details**: topic and participants, where they can be identified
2. **Agenda**: the main topics discussed
3. **Discussion points**: what was said, grouped by topic
4. **Decisions**: every decision that was made
5. **Action items**: follow-up tasks, with owners when mentioned
6. **Markdown**: use headings, lists and tables

Transcript:
---
{source}
---

Output the minutes directly as Markdown."""

MINDMAP = """Create a mind map of the content below as Markdown in Markmap syntax.

Requirements:
1. Use heading levels (# ## ### ####) for the hierarchy
2. Keep every node short, at most a few words
3. No more than 4 levels
4. One clear central topic with sensible branches
5. Output only the Markdown, without code fences

Content:
---
{source}
---"""

DIAGRAM = """Create a {diagram_type} diagram in Mermaid syntax from the description below.

Requirements:
1. Output only Mermaid code, without ```mermaid fences
2. Keep node labels short
3. Use appropriate arrows and connectors
4. Keep the layout clear and the logic correct

Diagram type: {diagram_type}
Description: {description}"""


def user_message(content: str) -> list[dict[str, str]]:
    return [{"role": "user", "content": content}]
