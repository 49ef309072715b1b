"""
Constants
Centralised storage for severity ordinals, tool names, and prompt markers.
"""
SEVERITY_ORDINALS = {"Critical": 4, "Major": 3, "Minor": 2, "Info": 1}
DEFAULT_THRESHOLD = "Major"

SONAR_SOURCE = "SonarQube"
ROSLYN_SOURCE = "Roslyn"

ISSUES_MARKER = "{{ISSUES}}"
FALLBACK_PROMPT_TEMPLATE = "Please review the following issues:\n" + ISSUES_MARKER

DEFAULT_CONFIG_FILE = "review.yaml"
