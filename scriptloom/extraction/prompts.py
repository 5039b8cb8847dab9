"""
Prompt Templates

Prompts for the model-backed passes. Each states the exact JSON contract the
response is validated against.
"""

from typing import Iterable, List

from scriptloom.core.constants import (
    MAX_EVIDENCE_WORDS,
    MAX_SNIPPET_CHARS,
    BlockType,
    CharacterRole,
    EntityType,
    TimelineAction,
)


def _enum_list(values: Iterable) -> str:
    return " | ".join(f'"{v.value}"' for v in values)


def _numbered(items: List[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, 1)) or "None"


EXTRACTION_SYSTEM_PROMPT = """You are a narrative extraction engine. Analyze screenplay or comic script text and extract entities and timeline events in strict JSON format.

CANON LOCKS (never propose or update these):
{canon_locks}

EXISTING ENTITIES (do not re-create):
{existing}

PASS 1 DISCOVERIES (do not duplicate):
{discovered}

OUTPUT SCHEMA:
{{
  "newEntities": [
    {{
      "name": "string",
      "entityType": {entity_types},
      "confidence": 0-1,
      "contextSnippet": "string (max {snippet_chars} chars)",
      "lineNumber": number,
      "evidence": {{"lineNumber": number, "snippet": "string"}},
      "suggestedRole": {roles} (optional, characters),
      "suggestedDescription": "string" (optional),
      "suggestedRegion": "string" (optional, locations),
      "suggestedTimeOfDay": "string" (optional, locations),
      "suggestedHolderId": "string" (optional, items),
      "suggestedItemDescription": "string" (optional, items)
    }}
  ],
  "updatedEntities": [
    {{
      "entityId": "string (must exist in EXISTING ENTITIES)",
      "entityType": {entity_types},
      "entityName": "string",
      "confidence": 0-1,
      "contextSnippet": "string",
      "lineNumber": number,
      "evidence": {{"lineNumber": number, "snippet": "string"}},
      "changeDescription": "string",
      "updates": {{"field": "value"}}
    }}
  ],
  "newTimelineEvents": [
    {{
      "entityType": {entity_types},
      "entityId": "string",
      "entityName": "string",
      "action": {actions},
      "payload": {{"key": "value"}},
      "description": "string",
      "confidence": 0-1,
      "contextSnippet": "string",
      "lineNumber": number,
      "evidence": {{"lineNumber": number, "snippet": "string"}}
    }}
  ]
}}

RULES:
- Each script line is prefixed with its 1-indexed number and "| ". The prefix is not part of the line.
- Every item MUST include evidence: the line number and at most {max_words} words copied verbatim (same case) from that line, without the prefix.
- Confidence must be between 0 and 1 (0.5-0.8 recommended)
- Do not hallucinate; only extract what is clearly present in the text
- Do not duplicate entities listed as EXISTING or PASS 1 DISCOVERIES, unless you add a richer description of a PASS 1 DISCOVERY
- Return empty arrays if nothing is found

Return pure JSON (no markdown, no explanation)."""


def build_extraction_system_prompt(
    canon_locks: List[str],
    existing_names: List[str],
    discovered_names: List[str]
) -> str:
    return EXTRACTION_SYSTEM_PROMPT.format(
        canon_locks=_numbered(canon_locks),
        existing=", ".join(existing_names) or "None",
        discovered=", ".join(discovered_names) or "None",
        entity_types=_enum_list(EntityType),
        roles=_enum_list(CharacterRole),
        actions=_enum_list(TimelineAction),
        snippet_chars=MAX_SNIPPET_CHARS,
        max_words=MAX_EVIDENCE_WORDS,
    )


def number_lines(text: str) -> str:
    return "\n".join(f"{n}| {line}" for n, line in enumerate(text.splitlines(), 1))


STORYBOARD_SYSTEM_PROMPT = f"""You are a storyboard compiler.

INPUT:
- manifest: a list of (page,panel) pairs that MUST be covered.
- panels: panel data with blocks. Each block has block_id, type, speaker (optional), and text.

OUTPUT:
Return JSON ONLY matching this shape:
{{
  "pages": [{{"page_number": n, "panels": [{{"panel_number": n, "beat": "string", "tone": "string", "characters": ["string"], "evidence": [{{"block_id": "string", "block_type": "string", "snippet": "string"}}]}}]}}],
  "coverage": [{{"page": n, "panel": n, "status": "ok" | "missing"}}]
}}

Hard requirements:
1) For EVERY (page,panel) in manifest, output a corresponding panel entry in pages[].panels[].
2) Also output coverage[] containing EVERY manifest pair with status "ok" or "missing".
3) Each panel MUST include evidence[] with at least 1 item referencing a real block_id from that panel.
4) evidence.snippet must be <= {MAX_EVIDENCE_WORDS} words copied verbatim from that block's text.
5) Do not invent story events. Use only what is in the blocks.

If a panel has little content, still output it with tone OTHER and a conservative beat."""


NORMALIZATION_PROMPT = """You are a normalization engine. Convert the input comic script into NormalizedScript v1 JSON.

Rules:
- Output JSON ONLY. No markdown. No commentary.
- Do NOT rewrite any story text. Copy dialogue, narration, captions, crawlers, SFX verbatim.
- Detect pages from headings like "PAGE ONE", "PAGE TWO", etc. Infer page_number accordingly.
- Detect panels from "Panel X" markers.
- Map content into blocks with types: {block_types}.
- For DIALOGUE and THOUGHT blocks, set speaker to the character name before the colon.
- If you cannot confidently assign a page/panel boundary, put that content in OTHER and add a warning string to warnings[].

Required output skeleton:
{{
  "source_hash": "{source_hash}",
  "warnings": [],
  "pages": [
    {{
      "page_number": 1,
      "panels": [
        {{
          "panel_number": 1,
          "blocks": [
            {{
              "type": "OTHER",
              "text": ""
            }}
          ]
        }}
      ]
    }}
  ]
}}"""


def build_normalization_prompt(source_hash: str) -> str:
    return NORMALIZATION_PROMPT.format(
        block_types=", ".join(b.value for b in BlockType),
        source_hash=source_hash,
    )
