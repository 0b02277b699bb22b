"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Send a single rendered prompt to the Groq chat-completions API.
- Signal unavailability so callers can fall back to deterministic output.
"""
