"""Prompt templates for the research agent and content synthesis."""

from __future__ import annotations

import json
from typing import Any

from .models import ResearchMode
from .tools import get_tool_descriptions

SYSTEM_PROMPT = """You are a scientific curiosity guide: part explorer, part teacher, part fellow wonderer.

Your mission is NOT to explain things. Your mission is to reveal WHERE KNOWLEDGE ENDS.

When someone shows you an observation, you:
1. IDENTIFY what they're seeing with scientific precision
2. MAP what humanity knows, debates, and doesn't know about it
3. SPARK genuine research questions they hadn't thought to ask
4. PROPOSE experiments they could actually do
5. CONNECT their observation to the broader tapestry of science

You are honest about uncertainty. When something is genuinely unknown, you say so with excitement, because that's where discovery lives. When something is well-established, you say so with confidence.

You never make things up. If you're uncertain, you say "this appears to be" or "likely", never false confidence.

Your tone: Curious, warm, precise. Like a scientist friend who's genuinely excited to explore with them."""

COMPLETION_HINT = (
    "[You have gathered significant research. Consider calling finish_research "
    "if you have enough context, or continue searching if needed.]"
)

MODE_FOCUS = {
    ResearchMode.SCIENCE: "Finding established scientific knowledge and peer-reviewed research",
    ResearchMode.UNKNOWN: "Exploring unknowns, open questions, and research frontiers",
    ResearchMode.EXPERIMENT: "Finding experiments, methods, and hands-on explorations",
    ResearchMode.FREEFORM: "Comprehensive exploration of all aspects",
}

PRIOR_CONTEXT_MAX_CHARS = 1000


def mode_focus(mode: ResearchMode) -> str:
    return MODE_FOCUS.get(mode, MODE_FOCUS[ResearchMode.FREEFORM])


def build_agent_prompt(topic: str, mode: ResearchMode, prior_context: Any = None) -> str:
    """Initial task-framing message for the research loop."""
    prior = ""
    if prior_context:
        serialized = json.dumps(prior_context, indent=2, default=str)[:PRIOR_CONTEXT_MAX_CHARS]
        prior = f"ORIGINAL SUBJECT ANALYSIS:\n{serialized}\n\n"

    return f"""You are a research agent exploring the topic "{topic}".
Your focus is: {mode_focus(mode)}

YOUR GOAL: Gather comprehensive research to create an engaging exploration page for curious users.

{get_tool_descriptions()}

STRATEGY:
1. Start with broad searches on the main topic
2. Try MULTIPLE search queries with different terms and synonyms
3. Search for both established knowledge AND recent developments
4. Look for controversies, debates, and unsolved questions
5. Use web search for context that might not be in papers
6. When you have 5-15 quality papers and good web context, call finish_research

IMPORTANT:
- Try at least 2-3 different search queries before finishing
- Include synonyms and related terms in your searches
- If a search returns few results, try alternative terminology
- Note if you find a research frontier (gap in knowledge, active debate, unsolved problem)

{prior}Begin your research now. Start with search queries related to "{topic}"."""


def build_branch_exploration_prompt(title: str, observation: str, research: str) -> str:
    return f"""The user is exploring: "{title}" for their observation of "{observation}".

You have access to research results below. USE THEM to ground your response.

RESEARCH RESULTS:
{research}

Based on these papers (or lack thereof), provide a focused exploration.

Return JSON in this exact format:
{{
  "headline": "5-7 word compelling headline",
  "summary": "2-3 sentences MAX. Be specific. Cite papers if relevant.",
  "depth": "known|investigated|debated|unknown|frontier",
  "confidence": 0-100,
  "knowledgeMap": {{
    "established": ["Fact 1 with high consensus", "Fact 2"],
    "debated": ["Active debate 1", "Controversy 2"],
    "unknown": ["Genuine unknown 1", "Open question 2"]
  }},
  "branches": [
    {{
      "id": "unique-id",
      "title": "2-4 words",
      "teaser": "Why this is worth exploring",
      "type": "science|unknown|experiment|deeper",
      "searchQuery": "What to search if they click this"
    }}
  ],
  "scientificTerms": [
    {{"term": "...", "definition": "...", "searchQuery": "...", "category": "..."}}
  ],
  "relatedTopics": [
    {{"title": "...", "teaser": "...", "searchQuery": "..."}}
  ],
  "isFrontier": boolean,
  "frontierReason": "If isFrontier is true, explain why in one sentence"
}}

FRONTIER DETECTION RULES:
- isFrontier = true if:
  - Paper search returned 0-2 results
  - Most recent paper is 5+ years old
  - The specific aspect being asked about has no direct research
  - You find genuine contradictions with no resolution
- isFrontier = false if:
  - Multiple recent papers exist
  - The topic is well-covered even if complex
  - Uncertainty is due to YOUR knowledge limits, not humanity's

CRITICAL:
- Ground claims in the research results
- If papers found: cite them, mention years, show this is real research
- If no papers: this might be a genuine frontier, say so honestly
- Never invent citations
- "Unknown" means HUMANITY doesn't know, not that YOU don't know"""


def build_experiment_prompt(observation: str, research: str) -> str:
    return f"""Generate safe, accessible experiments for investigating: "{observation}"

RESEARCH RESULTS:
{research}

Return JSON:
{{
  "headline": "5-7 word compelling headline",
  "summary": "2-3 sentences on what these experiments explore",
  "experiments": [
    {{
      "title": "Experiment name",
      "hypothesis": "What we're testing",
      "difficulty": "beginner|intermediate|advanced",
      "materials": ["item 1", "item 2"],
      "steps": ["Step 1", "Step 2"],
      "expectedOutcome": "What should happen if hypothesis is correct"
    }}
  ],
  "isFrontier": boolean,
  "frontierReason": "If isFrontier is true, explain why in one sentence"
}}

RULES:
- Beginner: Household items only, completely safe, anyone can do
- Intermediate: May need a few special items (magnifying glass, pH strips)
- Advanced: More complex but still accessible (no lab equipment)
- NEVER suggest anything dangerous
- Each experiment should actually test something meaningful
- Connect to real scientific methodology"""
