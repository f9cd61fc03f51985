"""
Drug Test Intake - Identity Resolution and Result Classification

Main modules:
- normalization: Name parsing, text normalization and substance vocabulary
- matching: Donor-to-candidate ranking (name + collection date similarity)
- classification: Substance-vs-medication verdicts and confirmation gating
- utils: YAML configuration management
"""

__version__ = "1.0.0"
