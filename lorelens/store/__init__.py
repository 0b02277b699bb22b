"""
In-memory persistence for Lore Lens.

Each module owns one table-like store: the content catalog, user/content
interactions, recommendation history, and user preferences. Upserts are
keyed the same way the hosted tables are (``id`` or ``(user_id, content_id)``).
"""
