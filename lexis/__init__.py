"""
Lexis -- Static Script Risk Analyzer
=====================================

Lexis performs static, non-executing risk assessment of PowerShell-style
automation scripts.  For each script it produces a classification, a
numeric obfuscation score, evidence-bearing risk factors, a simulated
behaviour and sandbox profile, a line-ordered pseudo-timeline and a
signature-match report.

Capabilities:
    - Shannon entropy and structural metrics over raw text
    - Base64 payload detection with decode verification
    - URL, IPv4 and suspicious-extension extraction
    - Keyword, command and encoding-method lookups against signature tables
    - String and variable-name obfuscation heuristics
    - Weighted obfuscation scoring and three-way classification
    - Named signature rules, behaviour buckets and threat hunting queries
    - CSV, JSON and plain-text report generation

References:
    - Shannon, C. E. (1948). A Mathematical Theory of Communication.
    - Bohannon, D., & Holmes, L. (2017). Revoke-Obfuscation: PowerShell
      Obfuscation Detection Using Science. Black Hat USA.
    - MITRE ATT&CK T1059.001 -- Command and Scripting Interpreter: PowerShell.
"""

__version__ = "1.0.0"
__all__ = [
    "LexisEngine",
    "AnalysisResult",
    "LexisConsoleOutput",
    "LexisReportGenerator",
    "analyze",
]

from lexis.core.engine import LexisEngine, analyze
from lexis.core.models import AnalysisResult
from lexis.output.console import LexisConsoleOutput
from lexis.output.report import LexisReportGenerator
