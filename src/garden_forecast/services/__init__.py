"""
Shared service utilities.

Simple modules that wrap HTTP plumbing. No magic.

- http.py      - requests session with default timeout, status → error mapping
"""
