"""Prompt for catalogue extraction."""

EXTRACTION_PROMPT = """You are an assistant that extracts a structured product/service catalogue from a plain-text group chat transcript.
Return ONLY valid JSON (no surrounding explanation). The JSON MUST be a top-level object with:
- "confidence": a number between 0 and 1, representing how confident you are in the catalogue extraction.
- EITHER "catalog": the catalogue object (see schema below) if confidence >= {threshold}
  OR "note": a short explanation (string) why you could not reliably extract a catalogue (if confidence < {threshold}).

The catalogue object (if present) must follow this schema:

{{
  "title": "<short title for catalogue>",
  "description": "<one-sentence description>",
  "categories": [
    {{
      "name": "<category name>",
      "items": [
        {{
          "name": "<item name>",
          "description": "<optional longer description>",
          "price": <optional number>,
          "tags": ["optional", "tags"],
          "extra": {{ "any_other_extracted_fields": "..." }}
        }}
      ]
    }}
  ]
}}

Rules:
- If price not mentioned, omit price (do not put null).
- Normalize prices to numbers (strip currency symbols).
- If unsure about categories, use "General".
- Extract duplicates once only.
- Provide a short catalogue title (3-6 words).
- Keep values short and consistent.
- Use arrays even if a single item exists.
- The output must be strict JSON. NO commentary or markdown.

Chat transcript START:
{transcript}
Chat transcript END:

Please produce the JSON described above for the transcript."""


def build_prompt(transcript: str, threshold: float) -> str:
    return EXTRACTION_PROMPT.format(transcript=transcript, threshold=threshold)
