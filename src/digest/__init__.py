"""Digest assembly: merging, prompt construction and summary generation.

Public API:
    merge: Deduplicating merge of fetched and stored updates.
    PromptAssembler: Budgeted, sectioned prompt construction.
    PromptBundle: System/user prompt pair with inclusion stats.
    DigestSection: A heading with its rendered message lines.
    PromptTemplate, PROMPT_TEMPLATES: Focus-keyed templates.
    DigestSummarizer: LLM call producing the digest text.
    DigestError: Base exception for module errors.
    DigestGenerationError: Raised when no digest text can be produced.
"""

from .assembler import PromptAssembler
from .exceptions import DigestError, DigestGenerationError
from .merger import merge
from .models import DigestSection, PromptBundle
from .prompts import PROMPT_TEMPLATES, PromptTemplate
from .summarizer import DigestSummarizer

__all__ = [
    "merge",
    "PromptAssembler",
    "PromptBundle",
    "DigestSection",
    "PromptTemplate",
    "PROMPT_TEMPLATES",
    "DigestSummarizer",
    "DigestError",
    "DigestGenerationError",
]
