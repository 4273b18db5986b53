"""Telegram HTML formatting of repository alerts."""

import html
import math
from dataclasses import dataclass

from gitscope.monitor.classifier import AlertTier

TIER_EMOJI = {
    AlertTier.NEW: "✨",  # sparkles
    AlertTier.NOTABLE: "⭐",  # star
    AlertTier.HOT: "\U0001f525",  # fire
    AlertTier.VIRAL: "\U0001f680",  # rocket
}

DIGEST_EMOJI = "\U0001f4ca"  # bar chart


@dataclass
class AlertData:
    """Everything needed to render one repository alert."""

    owner: str
    name: str
    description: str | None
    stars: int
    language: str | None
    repo_age_days: float
    tier: AlertTier = AlertTier.NEW
    stars_per_day: float | None = None


@dataclass
class DigestEntry:
    """One line of a digest message."""

    owner: str
    name: str
    stars: int
    tier: AlertTier
    stars_per_day: float | None = None


def escape_html(text: str) -> str:
    """Escape text for Telegram's HTML parse mode."""
    return html.escape(text, quote=True)


def format_age(repo_age_days: float) -> str:
    """Render a repository age on a human scale."""
    if repo_age_days < 1:
        return "< 1 day"
    if repo_age_days < 30:
        days = math.floor(repo_age_days)
        return f"{days} day" if days == 1 else f"{days} days"
    months = math.floor(repo_age_days / 30)
    return f"{months} month" if months == 1 else f"{months} months"


def _repo_link(owner: str, name: str) -> str:
    url = escape_html(f"https://github.com/{owner}/{name}")
    return f'<a href="{url}">{escape_html(owner)}/{escape_html(name)}</a>'


def _header(tier: AlertTier, owner: str, name: str) -> str:
    return f"{TIER_EMOJI[tier]} <b>[{tier.value.upper()}]</b> {_repo_link(owner, name)}"


def _details(data: AlertData) -> list[str]:
    description = escape_html(data.description) if data.description else "<i>No description</i>"
    language = escape_html(data.language) if data.language else "N/A"
    return [description, f"Language: {language} | Age: {format_age(data.repo_age_days)}"]


def format_alert(data: AlertData) -> str:
    """Format a velocity alert, including the growth rate."""
    rate = data.stars_per_day or 0.0
    lines = [
        _header(data.tier, data.owner, data.name),
        f"Stars: <b>{data.stars}</b> (+{rate:.1f}/day)",
        *_details(data),
    ]
    return "\n".join(lines)


def format_new_repo_alert(data: AlertData) -> str:
    """Format a first-sighting alert. No growth rate exists yet."""
    lines = [
        _header(AlertTier.NEW, data.owner, data.name),
        f"Stars: <b>{data.stars}</b>",
        *_details(data),
    ]
    return "\n".join(lines)


def format_digest(entries: list[DigestEntry]) -> str:
    """Format several alerts as one message, in the given order."""
    count = len(entries)
    noun = "repo" if count == 1 else "repos"
    lines = [f"{DIGEST_EMOJI} <b>GitScope digest</b>: {count} {noun} trending", ""]

    for entry in entries:
        line = f"{_header(entry.tier, entry.owner, entry.name)} - {entry.stars} stars"
        if entry.tier is not AlertTier.NEW and entry.stars_per_day is not None:
            line += f" (+{entry.stars_per_day:.1f}/day)"
        lines.append(line)

    return "\n".join(lines)
