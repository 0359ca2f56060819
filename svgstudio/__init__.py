"""Prompt-to-SVG generation, animation and GIF rendering, plus TikTok publishing."""
