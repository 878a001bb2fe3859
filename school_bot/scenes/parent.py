from __future__ import annotations

from school_bot import messages
from school_bot.errors import SchoolBotError
from school_bot.scenes.names import SceneName
from school_bot.scenes.router import Scene, SceneContext, prompt


async def _contact_admin(ctx: SceneContext) -> None:
    if not ctx.text:
        await ctx.reply(messages.ERRORS["empty_message"])
        return
    user = ctx.user
    try:
        await ctx.services.broadcast.contact_admins(user.name if user else ctx.first_name, ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc), ctx.menu)
    else:
        await ctx.reply(messages.SUCCESS["admins_contacted"], ctx.menu)
    await ctx.leave()


SCENES = (
    Scene(name=SceneName.CONTACT_ADMIN, on_enter=prompt("admin_message"), on_text=_contact_admin),
)


__all__ = ["SCENES"]
