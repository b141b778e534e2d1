"""PromptAssembler: budgeted, sectioned prompt construction."""

import logging
import re
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from src.slack.classifier import HIGH_PRIORITY
from src.slack.models import Category, Update
from src.slack.timestamps import JST, format_jst, sort_key

from .models import DigestSection, PromptBundle
from .prompts import DEFAULT_FOCUS, NOTHING_RENDERABLE, PROMPT_TEMPLATES, PromptTemplate

logger = logging.getLogger(__name__)

HIGH_PRIORITY_SECTION = "High Priority"
ALERT_SECTION = "Alert"
SUPPORT_SECTION = "Support"
GENERAL_SECTION = "General"
SECTION_ORDER = (HIGH_PRIORITY_SECTION, ALERT_SECTION, SUPPORT_SECTION, GENERAL_SECTION)

_MARKUP_RE = re.compile(r"[*`]")


def count_tokens(text: str) -> int:
    """Approximate token count as whitespace-delimited words."""
    return len(text.split())


def clean_text(text: str) -> str:
    """Strip Slack emphasis markers and fold the text onto one line."""
    folded = " ".join(_MARKUP_RE.sub("", text or "").split())
    return folded or "(no text)"


def section_for(update: Update) -> str:
    """Name of the digest section an update belongs to."""
    if update.category is Category.ALERT:
        return ALERT_SECTION
    if update.priority >= HIGH_PRIORITY:
        return HIGH_PRIORITY_SECTION
    if update.category is Category.SUPPORT:
        return SUPPORT_SECTION
    return GENERAL_SECTION


def section_header(heading: str) -> str:
    return f"{heading} Messages:"


def canonical_order(updates: Iterable[Update]) -> list[Update]:
    """Sort by priority, then timestamp, both ascending."""
    return sorted(updates, key=lambda u: (u.priority, sort_key(u.ts)))


class PromptAssembler:
    """Builds the digest prompt from merged updates under a word budget.

    Updates are ordered lowest priority / oldest first, then consumed from
    the other end so that, when the budget runs out, only the least
    important and oldest messages are dropped.

    Example usage:
        assembler = PromptAssembler(token_budget=3800)
        bundle = assembler.assemble(updates, focus="support")
        if bundle.is_renderable:
            print(bundle.user_prompt)
    """

    DEFAULT_TOKEN_BUDGET = 3800

    def __init__(
        self,
        token_budget: int = DEFAULT_TOKEN_BUDGET,
        templates: Optional[dict[str, PromptTemplate]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the assembler.

        Args:
            token_budget: Maximum word count of the rendered message block.
            templates: Focus-keyed templates. Must contain "default".
            clock: Returns the current time (for tests).
        """
        self._token_budget = token_budget
        self._templates = templates or PROMPT_TEMPLATES
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def token_budget(self) -> int:
        return self._token_budget

    def select_template(self, focus: str) -> PromptTemplate:
        """Template for ``focus``, falling back to the default with a warning."""
        template = self._templates.get(focus)
        if template is None:
            logger.warning("Unknown focus %r, using default prompt template", focus)
            template = self._templates[DEFAULT_FOCUS]
        return template

    def render_line(self, update: Update) -> str:
        """Render one update as a single prompt line.

        The permalink is copied verbatim.
        """
        return (
            f"[{format_jst(update.ts)}] #{update.channel} "
            f"({update.category.value}, priority {update.priority}): "
            f"{clean_text(update.text)} Link: {update.permalink}"
        )

    def _select(self, updates: list[Update]) -> tuple[dict[str, DigestSection], int, bool]:
        """Pick updates from the high end until the budget is exhausted."""
        sections: dict[str, DigestSection] = {}
        used = 0
        truncated = False

        for update in reversed(canonical_order(updates)):
            heading = section_for(update)
            line = self.render_line(update)
            cost = count_tokens(line)
            if heading not in sections:
                cost += count_tokens(section_header(heading))

            if used + cost > self._token_budget:
                truncated = True
                logger.info(
                    "Reached token limit for prompt, stopping message inclusion "
                    "(included=%d, total=%d, used=%d, next=%d)",
                    sum(s.count for s in sections.values()),
                    len(updates),
                    used,
                    cost,
                )
                break

            section = sections.setdefault(heading, DigestSection(heading=heading))
            section.updates.append(update)
            section.lines.append(line)
            used += cost

        return sections, used, truncated

    def render_block(self, sections: list[DigestSection]) -> str:
        """Join sections into the message block placed in the prompt."""
        parts = []
        for section in sections:
            parts.append("\n".join([section_header(section.heading), *section.lines]))
        return "\n\n".join(parts)

    def assemble(self, updates: Iterable[Update], focus: str = DEFAULT_FOCUS) -> PromptBundle:
        """Build the prompt bundle for ``updates``.

        Args:
            updates: Deduplicated updates from all channels.
            focus: Template name; unknown names fall back to "default".

        Returns:
            PromptBundle. When no update fits the budget (or there are
            none) the bundle is the explicit "nothing renderable" one.
        """
        updates = list(updates)
        template = self.select_template(focus)
        by_heading, used, truncated = self._select(updates)
        sections = [by_heading[h] for h in SECTION_ORDER if h in by_heading]
        included = sum(s.count for s in sections)

        if included == 0:
            logger.info("No messages fit within the prompt budget (%d)", self._token_budget)
            return PromptBundle(
                system_message=template.system_message,
                user_prompt=NOTHING_RENDERABLE,
                included_message_count=0,
                truncated=truncated,
                focus=template.name,
                total_message_count=len(updates),
            )

        current_time = self._clock().astimezone(JST).strftime("%Y-%m-%d %H:%M JST")
        user_prompt = template.render(
            current_time=current_time, messages=self.render_block(sections)
        )
        logger.debug(
            "Generated prompt focus=%s messages=%d tokens=%d chars=%d",
            template.name,
            included,
            used,
            len(user_prompt),
        )
        return PromptBundle(
            system_message=template.system_message,
            user_prompt=user_prompt,
            included_message_count=included,
            truncated=truncated,
            focus=template.name,
            total_message_count=len(updates),
            token_estimate=used,
            sections=sections,
        )
