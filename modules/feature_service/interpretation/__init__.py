"""Natural-language clause interpretation for the feature service."""

from .clause_interpreter import ClauseInterpreter, TTLCache, SYSTEM_PROMPT

__all__ = ['ClauseInterpreter', 'TTLCache', 'SYSTEM_PROMPT']
