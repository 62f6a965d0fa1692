"""Response parsing: raw model output to ProjectStructure."""

from .response_parser import ResponseParser, parse_response

__all__ = ["ResponseParser", "parse_response"]
