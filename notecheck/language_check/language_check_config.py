"""Configuration for dictionary checking rules and always-correct words.

This module defines the defaults used by the deterministic checker when
judging speaker notes: LanguageTool rules to disable and terms that should
never be reported as misspelt.
"""

# Maximum replacement candidates attached to a dictionary issue
DEFAULT_MAX_SUGGESTIONS = 5

# Rules to disable when LanguageTool is the dictionary backend. Words are
# checked one at a time, so sentence-level rules only add noise.
DEFAULT_DISABLED_RULES = {
    "WHITESPACE_RULE",
    "CONSECUTIVE_SPACES",
    "SENTENCE_WHITESPACE",
    "UPPERCASE_SENTENCE_START",
    "PUNCTUATION_PARAGRAPH_END",
    "EN_UNPAIRED_BRACKETS",
    "EN_UNPAIRED_QUOTES",
    "DASH_RULE",
}


# Default terms treated as correctly spelt (matched case-insensitively).
# Presentation and business vocabulary that general dictionaries miss.
DEFAULT_CUSTOM_TERMS = {
    # --- Presentation vocabulary ---
    "webinar", "webinars", "keynote", "keynotes", "walkthrough", "recap",

    # --- Business shorthand ---
    "kpi", "kpis", "okr", "okrs", "roi", "saas", "fintech", "upsell",
    "onboarding", "offboarding", "roadmap", "roadmaps",

    # --- Tech vocabulary ---
    "api", "apis", "backend", "frontend", "dataset", "datasets", "devops",
    "workflow", "workflows", "login", "signup",
}
