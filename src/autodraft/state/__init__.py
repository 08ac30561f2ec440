"""State/store layer.

This package is the single source of truth for how lookup results, seller
edits, and restored drafts are merged into one draft.
"""
