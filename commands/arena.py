"""
Debate arena commands: pick a topic and persona, join a side, drop stats
against the clock, and share the result as a thumbnail.
"""

import asyncio
import logging

import discord
from discord import app_commands
from discord.ext import commands

from domain.models.debate import RoundPhase
from services.arena_session_service import ArenaSessionService
from utils.embeds import build_arena_embed, build_topics_embed
from utils.thumbnail_drawing import thumbnail_filename

logger = logging.getLogger("arena_bot.commands.arena")


class ArenaCommands(commands.Cog):
    """Slash commands for the pundit debate arena."""

    def __init__(self, bot: commands.Bot, arena_service: ArenaSessionService):
        self.bot = bot
        self.arena_service = arena_service
        self._announcing: set[int] = set()
        self._pending: set[asyncio.Task] = set()

    def cog_unload(self):
        """Stop every running debate clock."""
        self.arena_service.close_all()
        self._announcing.clear()

    def _channel_id(self, interaction: discord.Interaction) -> int:
        return interaction.channel_id or 0

    def _ensure_announcer(self, interaction: discord.Interaction) -> int:
        """Post automatic round changes (timeouts, verdicts) to the channel."""
        channel_id = self._channel_id(interaction)
        if channel_id in self._announcing or interaction.channel is None:
            return channel_id
        channel = interaction.channel

        def announce(old: RoundPhase, new: RoundPhase) -> None:
            if new not in (RoundPhase.ROUND2, RoundPhase.VERDICT):
                return
            session = self.arena_service.get_session(channel_id)
            embed = build_arena_embed(session)
            task = asyncio.get_running_loop().create_task(self._send_announcement(channel, embed))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        self.arena_service.add_phase_listener(channel_id, announce)
        self._announcing.add(channel_id)
        return channel_id

    async def _send_announcement(self, channel, embed: discord.Embed) -> None:
        try:
            await channel.send(embed=embed)
        except Exception as exc:
            logger.error(f"Failed to announce round change: {exc}", exc_info=True)

    async def _reject(self, interaction: discord.Interaction, message: str | None) -> None:
        await interaction.response.send_message(message or "That can't be done right now.", ephemeral=True)

    @app_commands.command(name="topics", description="List tonight's debate topics")
    async def topics(self, interaction: discord.Interaction):
        topics = self.arena_service.list_topics()
        selected = None
        if self.arena_service.has_session(self._channel_id(interaction)):
            selected = self.arena_service.get_session(self._channel_id(interaction)).topic_index
        await interaction.response.send_message(embed=build_topics_embed(topics, selected))

    @app_commands.command(name="topic", description="Switch this channel to another topic")
    @app_commands.describe(index="Topic number from /topics")
    async def topic(self, interaction: discord.Interaction, index: int):
        channel_id = self._ensure_announcer(interaction)
        result = self.arena_service.select_topic(channel_id, index)
        if not result:
            await self._reject(interaction, result.error)
            return
        embed = build_arena_embed(self.arena_service.get_session(channel_id))
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="persona", description="Choose the commentary style")
    @app_commands.choices(
        name=[
            app_commands.Choice(name="Rowdy Pub", value="Rowdy Pub"),
            app_commands.Choice(name="Respectful Analysts", value="Respectful Analysts"),
            app_commands.Choice(name="Talk Radio", value="Talk Radio"),
        ]
    )
    async def persona(self, interaction: discord.Interaction, name: app_commands.Choice[str]):
        channel_id = self._ensure_announcer(interaction)
        result = self.arena_service.set_persona(channel_id, name.value)
        if not result:
            await self._reject(interaction, result.error)
            return
        await interaction.response.send_message(f"🎙️ Commentary is now **{result.value.display_name}**.")

    @app_commands.command(name="joinside", description="Pick the side you're arguing for")
    @app_commands.choices(
        side=[
            app_commands.Choice(name="Side A", value="a"),
            app_commands.Choice(name="Side B", value="b"),
        ]
    )
    async def joinside(self, interaction: discord.Interaction, side: app_commands.Choice[str]):
        channel_id = self._ensure_announcer(interaction)
        result = self.arena_service.join_side(channel_id, side.value)
        if not result:
            await self._reject(interaction, result.error)
            return
        label = self.arena_service.get_session(channel_id).machine.side_label()
        await interaction.response.send_message(f"You're arguing for **{label or side.name}**.")

    @app_commands.command(name="startdebate", description="Start a new two-round debate")
    async def startdebate(self, interaction: discord.Interaction):
        channel_id = self._ensure_announcer(interaction)
        result = self.arena_service.start(channel_id)
        if not result:
            await self._reject(interaction, result.error)
            return
        embed = build_arena_embed(self.arena_service.get_session(channel_id))
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="statdrop", description="Play a stat from the topic's list")
    @app_commands.describe(move="Move number shown on the arena card")
    async def statdrop(self, interaction: discord.Interaction, move: int):
        channel_id = self._ensure_announcer(interaction)
        result = self.arena_service.record_move(channel_id, move)
        if not result:
            await self._reject(interaction, result.error)
            return
        session = self.arena_service.get_session(channel_id)
        await interaction.response.send_message(f"📊 {session.state.crowd_log.latest()}")

    @app_commands.command(name="endround", description="End the current round early")
    async def endround(self, interaction: discord.Interaction):
        channel_id = self._ensure_announcer(interaction)
        result = self.arena_service.end_round(channel_id)
        if not result:
            await self._reject(interaction, result.error)
            return
        # The phase announcement carries the new arena card
        await interaction.response.send_message("Round ended.", ephemeral=True)

    @app_commands.command(name="arena", description="Show this channel's debate")
    async def arena(self, interaction: discord.Interaction):
        channel_id = self._ensure_announcer(interaction)
        embed = build_arena_embed(self.arena_service.get_session(channel_id))
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="thumbnail", description="Render a shareable thumbnail of the debate")
    async def thumbnail(self, interaction: discord.Interaction):
        channel_id = self._ensure_announcer(interaction)
        await interaction.response.defer()
        try:
            result = self.arena_service.render_thumbnail(channel_id)
            if not result:
                await interaction.followup.send(result.error, ephemeral=True)
                return
            file = discord.File(result.unwrap(), filename=thumbnail_filename())
            await interaction.followup.send(file=file)
        except Exception as e:
            logger.error(f"Error generating thumbnail: {e}", exc_info=True)
            await interaction.followup.send(f"Error generating thumbnail: {str(e)}", ephemeral=True)

    @app_commands.command(name="savethumbnail", description="Save the last rendered thumbnail")
    async def savethumbnail(self, interaction: discord.Interaction):
        channel_id = self._ensure_announcer(interaction)
        result = self.arena_service.export_thumbnail(channel_id)
        if not result:
            await self._reject(interaction, result.error)
            return
        path = result.unwrap()
        await interaction.response.send_message(
            f"💾 Saved as `{path.name}`.", file=discord.File(path, filename=path.name)
        )


async def setup(bot: commands.Bot):
    arena_service = getattr(bot, "arena_service", None)
    if arena_service is None:
        raise RuntimeError("Arena service not registered on bot.")
    await bot.add_cog(ArenaCommands(bot, arena_service))
