"""Cross-platform process snapshot reporting."""
