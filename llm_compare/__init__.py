"""LLM Output Compare - side-by-side comparison of model responses.

Send one prompt to two LLM providers and compare latency, token usage,
lexical statistics, and string similarity of the answers.
"""

__version__ = "1.0.0"
