"""Prompt templates for digest generation, keyed by focus.

Each user template receives two placeholders: ``{current_time}`` (JST) and
``{messages}`` (the rendered, sectioned message block).
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class PromptTemplate:
    """System role text plus user prompt layout for one focus."""

    name: str
    system_message: str
    user_template: str

    def render(self, current_time: str, messages: str) -> str:
        return self.user_template.format(current_time=current_time, messages=messages)


DEFAULT_FOCUS = "default"

NEWSPAPER_SYSTEM_PROMPT = (
    "You are a helpful assistant providing a fun, newspaper-style summary of "
    "Slack channel updates. Highlight key info and urgent items clearly."
)

NEWSPAPER_USER_TEMPLATE = """You are providing me with the important updates from my Slack channels for the week prior. Present them like a newspaper: key information at the top, important highlights next, urgent topics clearly called out, and everything else as a short summary of takeaways.

Each message includes a timestamp in JST (Japan Standard Time). Use these timestamps to give accurate timing, e.g. "yesterday at 2:30 PM" or "on February 1st".
The current time is {current_time}.

Structure the summary in the following sections:

1. "Top highlights" - 3-5 bullet points of the most important items, with links to the relevant Slack messages.
2. "Urgent Incidents and Support Issues" - Bullet points of major incidents and support issues, with links. Include details such as when an incident started.
3. "General Updates" - Group and summarize other topics and announcements, with takeaways.
4. "Support and Incident Summary" - An overview of support requests and incidents and any follow-up actions I need to take.

IMPORTANT: Each message below includes a "Link:" field containing the exact Slack message URL. When referencing a message you MUST use that exact URL in a markdown link formatted as [description](url). Do not modify the URLs or use placeholders.

Keep the tone cheery and bright, with the occasional light joke.

Messages to summarize, grouped by category:

{messages}

Please summarize these messages, using the exact Slack message URLs from the Link: fields above."""

SUPPORT_SYSTEM_PROMPT = (
    "You are a highly efficient support team assistant. You analyze Slack "
    "messages from support channels and provide a concise, actionable summary "
    "focused on customer issues, escalations, and resolutions. Prioritize "
    "clarity and urgency."
)

SUPPORT_USER_TEMPLATE = """Summarize the following support-related messages. Structure the summary into these sections:

1. **Critical/Urgent Issues:** Bullet points for any urgent matters needing immediate attention.
2. **New Support Requests:** Briefly list new issues raised.
3. **Updates & Resolutions:** Summarize progress on ongoing issues or confirmed resolutions.
4. **Statistics:** The total number of messages summarized, a breakdown of request types, components frequently mentioned, and teams involved.

IMPORTANT: Each message below includes a "Link:" field containing the exact Slack message URL. When referencing messages you MUST use these exact URLs in markdown links: [Description](exact-slack-url).

Use a professional and direct tone. Focus on actionable information.

Current time for context: {current_time}.

Messages:

{messages}

Please provide the support-focused summary."""

PROMPT_TEMPLATES: dict[str, PromptTemplate] = {
    DEFAULT_FOCUS: PromptTemplate(
        name=DEFAULT_FOCUS,
        system_message=NEWSPAPER_SYSTEM_PROMPT,
        user_template=NEWSPAPER_USER_TEMPLATE,
    ),
    "support": PromptTemplate(
        name="support",
        system_message=SUPPORT_SYSTEM_PROMPT,
        user_template=SUPPORT_USER_TEMPLATE,
    ),
}

NOTHING_RENDERABLE = "No processable messages found within token limits."
