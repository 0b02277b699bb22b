"""
Lore Lens content-discovery pipeline.

Responsibilities:
- Generate candidate content items for a search with the LLM.
- Filter candidates by the user's rating, year, genre and studio constraints.
- Resolve missing cover images through Serper with an LLM fallback.
- Score relevance per content type and optionally blend in personalization.
"""
