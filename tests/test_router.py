import pytest

from school_bot.errors import SceneTransitionError
from school_bot.scenes.names import SceneName
from school_bot.scenes.registry import ALL_SCENES, TOP_LEVEL_SEEDS, build_router
from school_bot.scenes.router import Event, Scene, SceneContext, SceneRouter
from school_bot.sessions import Session

pytestmark = pytest.mark.anyio


def test_every_scene_is_defined_once():
    router = build_router()
    assert {scene.name for scene in router} == set(SceneName)


def test_every_read_field_is_written_or_seeded():
    written = set(TOP_LEVEL_SEEDS)
    for scene in ALL_SCENES:
        written |= scene.writes
    for scene in ALL_SCENES:
        assert scene.reads <= written, scene.name


def test_every_written_field_is_cleared_somewhere():
    cleared = set()
    for scene in ALL_SCENES:
        cleared |= scene.clears
    for scene in ALL_SCENES:
        assert scene.writes <= cleared, scene.name
    assert TOP_LEVEL_SEEDS <= cleared


def test_router_rejects_missing_scenes():
    with pytest.raises(SceneTransitionError):
        SceneRouter([Scene(name=SceneName.SEARCH)])


def test_router_rejects_duplicate_scenes():
    with pytest.raises(SceneTransitionError):
        SceneRouter(list(ALL_SCENES) + [Scene(name=SceneName.SEARCH)])


def _context(router, session, event=None):
    async def send(text, reply_markup=None):
        pass

    return SceneContext(
        user_id=session.user_id,
        first_name="Tester",
        session=session,
        event=event or Event.text_message(""),
        services=None,
        router=router,
        send=send,
    )


async def test_chaining_outside_next_scenes_is_refused():
    router = build_router()
    session = Session(user_id=1)
    ctx = _context(router, session)
    ctx.origin = SceneName.SEARCH

    with pytest.raises(SceneTransitionError):
        await router.enter(ctx, SceneName.ADD_STUDENT_CLASS)


async def test_leave_drops_only_declared_fields():
    router = build_router()
    session = Session(user_id=1, active_scene=SceneName.EDIT_STUDENT_NAME.value)
    session.set("edit_student_id", "1000000001")
    session.set("unrelated", "kept")

    await router.leave(_context(router, session))

    assert session.active_scene is None
    assert session.fields == {"unrelated": "kept"}


async def test_unknown_active_scene_is_reset():
    router = build_router()
    session = Session(user_id=1, active_scene="retired_scene")

    assert router.active(session) is None
    assert session.active_scene is None


async def test_dispatch_falls_through_without_active_scene():
    router = build_router()
    session = Session(user_id=1)

    assert await router.dispatch(_context(router, session)) is False
