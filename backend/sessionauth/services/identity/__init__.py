"""User directory service (identity provider)."""
