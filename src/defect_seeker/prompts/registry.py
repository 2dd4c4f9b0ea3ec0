"""MCP prompt registry.

Prompts are predefined conversation/workflow templates that the client can invoke explicitly.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP


def _filter_lines(**filters: str | None) -> list[str]:
    """Return ``- name: value`` lines for the filters that were given."""
    return [f"- {name}: {value}" for name, value in filters.items() if value]


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates on the MCP server."""

    @mcp.prompt()
    def triage_backlog(
        status: str = "Open",
        severity: str | None = None,
        assignee_id: str | None = None,
        page_size: int = 25,
    ) -> list[dict[str, Any]]:
        """Build a prompt for reviewing and prioritizing the open backlog."""
        call_lines = _filter_lines(status=status, severity=severity, assignee_id=assignee_id)
        call_lines += ["- sort_by: severity", "- sort_order: desc", f"- page_size: {page_size}"]
        call_block = "\n".join(call_lines)
        return [
            {
                "role": "system",
                "content": (
                    "You are a QA lead reviewing a defect backlog. Be concise and base every "
                    "statement on tool output. Do not invent defects, owners or dates."
                ),
            },
            {
                "role": "user",
                "content": (
                    "Review the defect backlog using list_defects. Follow this workflow:\n"
                    "- Call reset_defect_filters, then list_defects with the parameters below.\n"
                    "- If has_next is true, page through with list_defects(page=N) without "
                    "changing any other parameter; changing a filter resets to page 1.\n"
                    "- Use get_defect for the description and comments of any Critical or High item.\n"
                    "- Never call bulk_update_status, bulk_delete_defects or delete_defect "
                    "without explicit approval from the user.\n\n"
                    "Call list_defects with:\n"
                    f"{call_block}\n\n"
                    "Return this structure:\n"
                    "1) Overview (counts by severity; total_count)\n"
                    "2) Top risks (up to 5 defects: id, title, severity, assignee)\n"
                    "3) Unassigned work (ids; suggest an owner only if obvious)\n"
                    "4) Suggested status changes (id -> status, with one-line reason)\n"
                ),
            },
        ]

    @mcp.prompt()
    def create_defect_report(
        title: str,
        category: str = "Functional",
        steps: str = "",
        observed: str = "",
    ) -> list[dict[str, Any]]:
        """Build a prompt that drafts and logs a defect with a predicted severity."""
        return [
            {
                "role": "system",
                "content": (
                    "Write a precise defect description. Redact secrets, credentials, "
                    "or PII if present."
                ),
            },
            {
                "role": "user",
                "content": (
                    f"Title: {title}\n"
                    f"Category: {category}\n\n"
                    "Draft a description with sections:\n"
                    "- Summary\n"
                    "- Steps to Reproduce\n"
                    "- Expected vs Actual\n"
                    "- Impact\n\n"
                    f"Steps provided:\n{steps}\n\n"
                    f"Observed behaviour:\n{observed}\n\n"
                    "Then call predict_severity with the title, description and category, "
                    "show the suggested severity and reasoning, and only call create_defect "
                    "(passing ai_reasoning and predicted_severity) once the user agrees.\n"
                ),
            },
        ]

    @mcp.prompt()
    def summarize_defect(defect_id: str) -> list[dict[str, Any]]:
        """Build a prompt that summarizes one defect and its discussion."""
        return [
            {
                "role": "system",
                "content": (
                    "You are a precise assistant. Summarize the defect, its current state, "
                    "and any open questions raised in the comments."
                ),
            },
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "Summarize this defect:"},
                    {"type": "resource", "uri": f"defect://{defect_id}"},
                ],
            },
        ]
