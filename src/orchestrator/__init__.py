"""Pipeline orchestrator for the Slack digest.

Connects ChannelResolver, HistoryFetcher, the repository, PromptAssembler,
DigestSummarizer and DigestMailer into a single run with per-channel error
isolation and structured results.
"""

from .models import ChannelSyncResult, RunResult, StepResult
from .pipeline import DigestOrchestrator

__all__ = [
    "DigestOrchestrator",
    "ChannelSyncResult",
    "RunResult",
    "StepResult",
]
