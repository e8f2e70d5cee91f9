"""
Cohort Engine - engagement analysis and partner matching

This package holds the scoring logic behind a cohort-based leadership
program: ranking candidate accountability partners and flagging
participants whose activity needs an administrator's attention.

Key Design Decisions:
- Both components are pure functions of their inputs (no I/O, no state)
- Compatibility is a fixed weighted-dimension score, not a learned model
- Engagement flags come from an ordered table of independent rules
- Missing data is normalized explicitly: unanswered profile fields earn
  no points, missing counts are zero, missing timestamps are "never"
- A text-generation pass for nuanced flags is optional and can never
  change or block the rule-based results
"""

__version__ = "1.0.0"
