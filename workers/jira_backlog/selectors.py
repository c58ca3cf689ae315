"""
Jira Backlog Selectors
======================
CSS selectors and marker attributes of the Jira Cloud backlog page.
"""

# ── Board ─────────────────────────────────────────────────────────
SCROLLABLE_CSS = 'div[data-test-id="software-backlog.backlog-content.scrollable"]'

# ── Sections ──────────────────────────────────────────────────────
SECTION_ATTR = 'data-testid'              # sprint / backlog section identity
CARD_LIST_ATTR = 'data-test-id'           # nested card list and list node
DIVIDER_SUFFIX = 'divider.container'
EMPTY_SUFFIX = 'empty-card-list'

# ── Injected copies ───────────────────────────────────────────────
INJECTED_ATTR = 'data-unroll-copy'
INJECTED_Z_INDEX = '-1'
