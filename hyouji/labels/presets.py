"""Built-in label sets.

PRESET_LABELS is what "create multiple labels" sends to GitHub.
SAMPLE_LABELS is the three-entry set written by the sample generators.
"""

from __future__ import annotations

from hyouji.labels.models import Label

SAMPLE_LABELS = [
    Label("Type: Bug Fix", "FF8A65", "Fix features that are not working"),
    Label("Type: Enhancement", "64B5F7", "Add new features"),
    Label("Type: Improvement", "4DB6AC", "Improve existing functionality"),
]

PRESET_LABELS = [
    *SAMPLE_LABELS,
    Label("Type: Modification", "4DD0E1", "Modify existing functionality"),
    Label("Type: Optimization", "BA68C8", "Optimized existing functionality"),
    Label("Type: Security Fix", "FF8A65", "Fix security issue"),
    Label("Status: Available", "81C784", "Waiting for working on it"),
    Label("Status: In Progress", "64B5F7", "Currently working on it"),
    Label("Status: Completed", "4DB6AC", "Worked on it and completed"),
    Label("Status: Canceled", "E57373", "Worked on it, but canceled"),
    Label("Status: Inactive (Abandoned)", "90A4AF", "For now, there is no plan to work on it"),
    Label("Status: Inactive (Duplicate)", "90A4AF", "This issue is duplicated"),
    Label("Status: Inactive (Invalid)", "90A4AF", "This issue is invalid"),
    Label("Status: Inactive (Won't Fix)", "90A4AF", "There is no plan to fix this issue"),
    Label("Status: Pending", "A2887F", "Worked on it, but suspended"),
    Label("Priority: ASAP", "FF8A65", "We must work on it asap"),
    Label("Priority: High", "FFB74D", "We must work on it"),
    Label("Priority: Medium", "FFF177", "We need to work on it"),
    Label("Priority: Low", "DCE775", "We should work on it"),
    Label("Priority: Safe", "81C784", "We would work on it"),
    Label("Effort Effortless", "81C784", "No efforts are expected"),
    Label("Effort Heavy", "FFB74D", "Heavy efforts are expected"),
    Label("Effort Normal", "FFF177", "Normal efforts are expected"),
    Label("Effort Light", "DCE775", "Light efforts are expected"),
    Label("Effort Painful", "FF8A65", "Painful efforts are expected"),
    Label("Feedback Discussion", "F06293", "A discussion about features"),
    Label("Feedback Question", "F06293", "A question about features"),
    Label("Feedback Suggestion", "F06293", "A suggestion about features"),
    Label("Docs", "000000", "Documentation"),
]
