"""Slack modal views."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from incidentbot.models import IncidentTemplate, Severity

View = dict[str, Any]
Block = dict[str, Any]

_DEFAULT_SEVERITY = Severity.P2
_TITLE_MAX_LENGTH = 100


def _plain(text: str) -> dict[str, str]:
    return {"type": "plain_text", "text": text}


def _option(text: str, value: str) -> dict[str, Any]:
    return {"text": _plain(text), "value": value}


def _severity_option(severity: Severity) -> dict[str, Any]:
    return _option(severity.label(), severity.value)


def _static_select(action_id: str, options: Iterable[dict[str, Any]], **extra: Any) -> Block:
    return {"type": "static_select", "action_id": action_id, "options": list(options), **extra}


def _input(block_id: str, label: str, element: Block, *, optional: bool = False) -> Block:
    block: Block = {
        "type": "input",
        "block_id": block_id,
        "label": _plain(label),
        "element": element,
    }
    if optional:
        block["optional"] = True
    return block


def _template_block(templates: Sequence[IncidentTemplate]) -> Block:
    picker = _static_select(
        "template_select",
        (_option(t.title, t.name) for t in templates),
        placeholder=_plain("Select a template or fill manually"),
    )
    return _input("template_block", "Use Template (Optional)", picker, optional=True)


def _standard_blocks(services: Sequence[str]) -> list[Block]:
    title_field = {
        "type": "plain_text_input",
        "action_id": "title_input",
        "placeholder": _plain("e.g., Okta SSO outage"),
        "max_length": _TITLE_MAX_LENGTH,
    }
    severity_field = _static_select(
        "severity_select",
        map(_severity_option, Severity),
        initial_option=_severity_option(_DEFAULT_SEVERITY),
    )
    service_field = _static_select("service_select", (_option(s, s) for s in services))
    commander_field = {"type": "users_select", "action_id": "commander_select"}

    return [
        _input("title_block", "Incident Title", title_field),
        _input("severity_block", "Severity", severity_field),
        _input("service_block", "Affected Service", service_field),
        _input("commander_block", "Incident Commander", commander_field, optional=True),
    ]


def declare_incident_modal(
    services: Sequence[str], templates: Sequence[IncidentTemplate]
) -> View:
    """The modal for declaring an incident, with a template picker if any exist."""
    blocks = [_template_block(templates)] if templates else []
    blocks += _standard_blocks(services)

    return {
        "type": "modal",
        "callback_id": "declare_incident_modal",
        "title": _plain("Declare Incident"),
        "submit": _plain("Declare"),
        "close": _plain("Cancel"),
        "blocks": blocks,
    }