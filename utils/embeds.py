"""
Reusable Discord embed builders for the arena.
"""

import discord

from domain.models.debate import RoundPhase, Side
from domain.models.topic import Topic
from services.arena_session_service import ArenaSession

FIELD_VALUE_LIMIT = 1024
TITLE_LIMIT = 256
DESCRIPTION_LIMIT = 4096

PHASE_NAMES = {
    RoundPhase.IDLE: "Waiting to start",
    RoundPhase.ROUND1: "Round 1",
    RoundPhase.ROUND2: "Round 2",
    RoundPhase.VERDICT: "Verdict",
}


def truncate_field(text: str, max_len: int = FIELD_VALUE_LIMIT) -> str:
    """Truncate text to fit a Discord embed limit (field value by default)."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def _theme_color(hex_color: str) -> discord.Color:
    return discord.Color(int(hex_color.lstrip("#"), 16))


def format_move_list(topic: Topic, used_keys: set[str] | None = None) -> str:
    """Numbered list of playable moves; used ones are struck through."""
    if not topic.moves:
        return "No stats for this topic"
    used_keys = used_keys or set()
    items = []
    for idx, item in enumerate(topic.moves, 1):
        line = f"{idx}. {item.label}: {item.display_value}"
        if item.key in used_keys:
            line = f"~~{line}~~"
        items.append(line)
    return "\n".join(items)


def format_topic_list(topics: list[Topic], selected: int | None = None) -> str:
    if not topics:
        return "No topics loaded"
    lines = []
    for idx, topic in enumerate(topics):
        marker = "▶ " if idx == selected else ""
        lines.append(f"{marker}`{idx}` {topic.title} ({topic.sides[0]} vs {topic.sides[1]})")
    return "\n".join(lines)


def build_arena_embed(session: ArenaSession) -> discord.Embed:
    """Status card for a channel's arena."""
    machine = session.machine
    state = machine.state
    topic = machine.topic
    embed = discord.Embed(
        title=truncate_field(topic.title, TITLE_LIMIT) if topic else "No topic selected",
        color=_theme_color(machine.persona.theme.a),
    )
    if topic is None:
        embed.description = "Use `/topics` to see what's on tonight."
        return embed

    side = machine.side_label() if machine.joined_side is not Side.UNSET else "not joined"
    embed.description = truncate_field(
        f"**{topic.sides[0]}** vs **{topic.sides[1]}**\n"
        f"Persona: {machine.persona.display_name} | Your side: {side}",
        DESCRIPTION_LIMIT,
    )

    phase_text = PHASE_NAMES[state.phase]
    if state.phase.is_active:
        phase_text += f" · {state.seconds_remaining}s left"
    embed.add_field(name="Phase", value=phase_text, inline=True)
    embed.add_field(name="Stat drops", value=str(state.moves_count), inline=True)

    embed.add_field(
        name="Moves",
        value=truncate_field(format_move_list(topic, set(state.used_move_keys))),
        inline=False,
    )
    if len(state.moderator_log):
        embed.add_field(name="Moderator", value=truncate_field("\n".join(state.moderator_log)), inline=False)
    if len(state.crowd_log):
        embed.add_field(name="Crowd", value=truncate_field("\n".join(f"• {line}" for line in state.crowd_log)), inline=False)
    if state.verdict_text:
        embed.add_field(name="Verdict", value=truncate_field(state.verdict_text), inline=False)
    return embed


def build_topics_embed(topics: list[Topic], selected: int | None = None) -> discord.Embed:
    return discord.Embed(
        title="Debate Topics",
        description=truncate_field(format_topic_list(topics, selected), DESCRIPTION_LIMIT),
        color=discord.Color.blurple(),
    )
