"""Drafter: property photo folders in, portal listing drafts out."""
