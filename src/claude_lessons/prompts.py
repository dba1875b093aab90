"""Prompt text sent to the analysis collaborator."""

from .config import MAX_MESSAGE_CHARS
from .models import Message, MessageKind

TRUNCATION_MARKER = "...[truncated]"

# Substrings that only occur in prompts this package generates. A transcript
# containing one of them was created by our own analysis call.
ANALYSIS_FINGERPRINTS = (
    "Analyze the entire AI–human development session transcript",
    "development session between a human developer and an AI assistant",
    "<analysis-guidelines>",
    "<pattern-detection-heuristics>",
)

ANALYSIS_INSTRUCTIONS = """
<task>
Analyze the entire AI–human development session transcript (including any visible internal AI monologue) to extract actionable, reusable insights that will improve future AI sessions with this same user. The transcript is a development session between a human developer and an AI assistant. Work at the meta level only: identify patterns about behavior, tools, workflows, and communication. Do NOT attempt to solve the technical problems discussed.
</task>

<key-goals>
1) Detect failure→iteration→success flows: when attempts fail repeatedly and a later approach works, capture the transition and what triggered the successful pivot.
2) Capture explicit user directives and constraints (e.g., "don't do X; do Y instead") so future AIs follow them immediately.
3) Identify environment and permission constraints that repeatedly block progress.
4) Surface unsafe or corner-cutting behaviors (disabling tests or linters, hardcoding secrets, bypassing security) and treat them as mistakes.
5) Produce concrete, reusable "if X then Y" recommendations to accelerate future sessions with this user.
</key-goals>

<analysis-guidelines>
- Analyze interaction patterns and process, not the technical content itself.
- Rely only on the provided transcript.
- Generalize patterns where possible, but keep specific details (tool names, OS constraints) when they change behavior.
- Prefer high-impact, recurring patterns over one-offs; deduplicate similar findings.
- If information is unknown or not evidenced, write "unknown" rather than guessing.
- Redact secrets, tokens, credentials, email addresses and phone numbers as "[REDACTED]".
</analysis-guidelines>

<pattern-detection-heuristics>
- Failure→Success Flow: initial approach, failure signals, pivot trigger, working approach, why it worked.
- User Overrides & Boundaries: "don't…", "stop…", "use … instead", "never …", "only …", with the context and reasoning behind them.
- Permission/Access Issues: missing permissions, sandbox limits, blocked commands, missing tools, missing API keys, rate limits.
- Wrong Assumptions: OS or tooling mismatches, unavailable frameworks, wrong paths, wrong versions, unsupported flags.
- Effective Solutions/Workflows: bisecting, minimal repros, logging, dry runs, test-first, small diffs, commands that worked.
- Communication Style & Preferences: workflow preferences with their technical domain and the reason behind them.
</pattern-detection-heuristics>

<evidence-rules>
- For each item, include 1–2 short direct quotes as "evidence" with a speaker label ("User:" or "AI:").
- Keep each quote under 30 words.
</evidence-rules>

<lessons-format>
- Write each "lesson" as a concrete playbook: "If you see <trigger>, do <action> using <tool/command>".
- End each "lesson" with "(Impact: High|Medium|Low; Confidence: High|Medium|Low)".
</lessons-format>

<output-rules>
- Output ONLY a valid JSON object. No explanations, no markdown, no code blocks.
- Use the schema below verbatim. Arrays may be empty. Strings must be quoted. No unescaped quotes.
- For string fields (os, verbosity, techLevel, patience): use "unknown" where details are not present.
- For array fields (restrictions, tools, boundaries, preferences, recommendations): use [] where nothing is found, never "unknown".
</output-rules>

<output-format>
{
  "mistakes": [
    {
      "type": "failed_approach|wrong_assumption|boundary_violation|misunderstanding|access_issue",
      "description": "What went wrong and why",
      "evidence": "Short direct quote with speaker label",
      "lesson": "If <trigger>, then <action>. (Impact: High|Medium|Low; Confidence: High|Medium|Low)"
    }
  ],
  "successes": [
    {
      "type": "solution|tool_choice|communication|workflow",
      "description": "What worked and why",
      "evidence": "Short direct quote with speaker label",
      "lesson": "If <trigger>, then <action>. (Impact: High|Medium|Low; Confidence: High|Medium|Low)"
    }
  ],
  "userProfile": {
    "environment": {
      "os": "detected OS or unknown",
      "restrictions": [],
      "tools": []
    },
    "style": {
      "verbosity": "concise|detailed|unknown",
      "techLevel": "beginner|intermediate|expert|unknown",
      "patience": "high|medium|low|unknown"
    },
    "boundaries": [],
    "preferences": []
  },
  "recommendations": []
}
</output-format>
"""


def truncate_text(text: str, limit: int = MAX_MESSAGE_CHARS) -> str:
    """Cut text longer than ``limit`` characters and mark the cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


def format_message(message: Message) -> str:
    """Render one message with its speaker tag."""
    content = truncate_text(message.text)
    if message.kind == MessageKind.USER:
        return f"<human>{content}</human>"
    return f"<ai>{content}</ai>"


def format_conversation(messages: list[Message]) -> str:
    """Render a batch of messages as a tagged conversation excerpt."""
    body = "\n".join(format_message(m) for m in messages)
    return f"<conversation>\n{body}\n</conversation>"


def build_analysis_prompt(messages: list[Message]) -> str:
    """Full prompt for one batch: the excerpt followed by the instructions."""
    return format_conversation(messages) + "\n" + ANALYSIS_INSTRUCTIONS


def contains_fingerprint(text: str, fingerprints: tuple[str, ...] = ANALYSIS_FINGERPRINTS) -> bool:
    """Whether text contains any of our prompt fingerprints."""
    return any(fingerprint in text for fingerprint in fingerprints)
