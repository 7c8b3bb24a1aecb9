"""
Application Layer for the exercise content resolver.

This package contains:
- ports/: Abstract interfaces the resolution core depends on
  (catalog source, asset validator)
"""
