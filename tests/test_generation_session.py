import asyncio

import pytest

from models.session_models import DetailLevel, Failed, SessionStatus, TurnRole
from services.conversation import VideoPrompt
from services.errors import CommandRejectedError, ErrorKind, RemoteGenerationError
from services.generation_session import (
    GENERATION_FAILED_MESSAGE,
    GENERATION_PLACEHOLDER,
    REFINEMENT_FAILED_NOTICE,
    GenerationSession,
)
from services.prompts import assemble
from utils.media_validation import INVALID_TYPE_MESSAGE, TOO_LARGE_MESSAGE

PROMPT = assemble(DetailLevel.AVERAGE, [], [])


async def _succeeded(session, backend, make_video, reply="A dog runs on a beach."):
    backend.script(reply)
    await session.select_file(make_video())
    await session.generate(PROMPT)
    assert session.status == SessionStatus.SUCCESS
    return session


async def test_valid_video_is_selected(session, make_video):
    video = make_video(size=1024 * 1024)

    await session.select_file(video)

    assert session.status == SessionStatus.FILE_SELECTED
    assert session.video == video
    assert session.last_error is None


async def test_image_type_is_rejected(session, make_video):
    video = make_video(mime_type="image/png")

    await session.select_file(video)

    assert session.status == SessionStatus.ERROR
    assert session.last_error == INVALID_TYPE_MESSAGE
    assert session.state.kind == ErrorKind.INVALID_INPUT
    assert session.video is None
    assert not video.path.exists()


async def test_oversized_video_is_rejected(session, make_video):
    await session.select_file(make_video(size=105_000_000))

    assert session.status == SessionStatus.ERROR
    assert session.last_error == TOO_LARGE_MESSAGE


async def test_invalid_selection_releases_previous_video(session, make_video):
    first = make_video()
    await session.select_file(first)

    await session.select_file(make_video(mime_type="text/plain"))

    assert session.status == SessionStatus.ERROR
    assert not first.path.exists()


async def test_replacing_a_video_releases_the_old_one(session, make_video):
    first, second = make_video(), make_video()
    await session.select_file(first)

    await session.select_file(second)

    assert session.video == second
    assert not first.path.exists()
    assert second.path.exists()


async def test_generate_success(session, backend, make_video):
    video = make_video()
    backend.script("A dog runs on a beach.")
    await session.select_file(video)

    await session.generate(PROMPT)

    assert session.status == SessionStatus.SUCCESS
    assert len(session.transcript) == 2
    turns = list(session.transcript)
    assert (turns[0].role, turns[0].text) == (TurnRole.USER, GENERATION_PLACEHOLDER)
    assert (turns[1].role, turns[1].text) == (TurnRole.MODEL, "A dog runs on a beach.")
    assert session.latest_description == "A dog runs on a beach."
    assert session.conversation_handle == "conv-1"

    assert backend.system_instructions == [PROMPT.system_instruction]
    handle, content = backend.sent[0]
    assert handle == "conv-1"
    assert content == VideoPrompt(b"fake video bytes", "video/mp4", PROMPT.user_instruction)


async def test_generate_failure_is_a_hard_error(session, backend, make_video):
    video = make_video()
    backend.script(RemoteGenerationError("quota exceeded"))
    await session.select_file(video)

    await session.generate(PROMPT)

    assert session.status == SessionStatus.ERROR
    assert session.last_error == GENERATION_FAILED_MESSAGE
    assert session.state.kind == ErrorKind.GENERATION_FAILURE
    assert session.conversation_handle is None
    assert len(session.transcript) == 0
    assert backend.open == set()
    assert not video.path.exists()


async def test_create_conversation_failure_is_a_hard_error(session, backend, make_video):
    backend.create_error = RemoteGenerationError("unavailable")
    await session.select_file(make_video())

    await session.generate(PROMPT)

    assert isinstance(session.state, Failed)
    assert session.last_error == GENERATION_FAILED_MESSAGE


async def test_generate_requires_selected_file(session):
    with pytest.raises(CommandRejectedError):
        await session.generate(PROMPT)


async def test_refine_success_appends_two_turns(session, backend, make_video):
    await _succeeded(session, backend, make_video)
    backend.script("A dog runs on a beach, wagging its tail comically.")

    await session.refine("make it funnier")

    assert session.status == SessionStatus.SUCCESS
    assert [(t.role, t.text) for t in list(session.transcript)[2:]] == [
        (TurnRole.USER, "make it funnier"),
        (TurnRole.MODEL, "A dog runs on a beach, wagging its tail comically."),
    ]
    assert session.latest_description == "A dog runs on a beach, wagging its tail comically."
    assert backend.sent[-1] == ("conv-1", "make it funnier")
    assert session.conversation_handle == "conv-1"


async def test_refine_failure_rolls_back_silently(session, backend, make_video):
    await _succeeded(session, backend, make_video)
    before = session.transcript.replay()
    backend.script(RemoteGenerationError("boom"))

    await session.refine("make it funnier")

    assert session.status == SessionStatus.SUCCESS
    assert session.transcript.replay() == before
    assert session.latest_description == "A dog runs on a beach."
    assert session.last_error is None
    assert session.notice == REFINEMENT_FAILED_NOTICE
    assert session.conversation_handle == "conv-1"


async def test_notice_is_cleared_by_next_refinement(session, backend, make_video):
    await _succeeded(session, backend, make_video)
    backend.script(RemoteGenerationError("boom"), "Shorter.")

    await session.refine("shorter")
    await session.refine("shorter")

    assert session.notice is None
    assert session.latest_description == "Shorter."


async def test_refine_rejects_blank_text(session, backend, make_video):
    await _succeeded(session, backend, make_video)

    with pytest.raises(CommandRejectedError) as info:
        await session.refine("   ")

    assert info.value.status_code == 422
    assert len(session.transcript) == 2


async def test_refine_requires_success(session, make_video):
    await session.select_file(make_video())

    with pytest.raises(CommandRejectedError):
        await session.refine("make it funnier")


async def test_refining_status_blocks_other_commands(session, backend, make_video):
    await _succeeded(session, backend, make_video)
    backend.delay = 0.05
    backend.script("Updated.")

    task = asyncio.create_task(session.refine("more detail"))
    await asyncio.sleep(0)

    assert session.status == SessionStatus.REFINING
    assert session.transcript.replay()[-1] == {"role": "user", "text": "more detail"}
    with pytest.raises(CommandRejectedError):
        await session.refine("again")
    with pytest.raises(CommandRejectedError):
        await session.select_file(make_video())

    await task
    assert session.status == SessionStatus.SUCCESS
    assert session.latest_description == "Updated."


async def test_timeout_fails_generation(backend, video_store, make_video):
    session = GenerationSession(backend, video_store, timeout=0.01)
    backend.delay = 1
    await session.select_file(make_video())

    await session.generate(PROMPT)

    assert session.status == SessionStatus.ERROR
    assert session.last_error == GENERATION_FAILED_MESSAGE


async def test_timeout_rolls_back_refinement(backend, video_store, make_video):
    session = GenerationSession(backend, video_store, timeout=0.05)
    await _succeeded(session, backend, make_video)
    backend.delay = 1

    await session.refine("make it funnier")

    assert session.status == SessionStatus.SUCCESS
    assert len(session.transcript) == 2


async def test_new_selection_after_success_forces_fresh_conversation(session, backend, make_video):
    await _succeeded(session, backend, make_video)

    await session.select_file(make_video())

    assert session.status == SessionStatus.FILE_SELECTED
    assert session.conversation_handle is None
    assert len(session.transcript) == 0
    assert "conv-1" not in backend.open

    backend.script("Second video.")
    await session.generate(PROMPT)
    assert session.conversation_handle == "conv-2"


@pytest.mark.parametrize("target", ["idle", "file-selected", "success", "error"])
async def test_reset_from_any_status(session, backend, make_video, target):
    video = make_video()
    if target != "idle":
        await session.select_file(video)
    if target == "success":
        backend.script("Described.")
        await session.generate(PROMPT)
    if target == "error":
        backend.script(RemoteGenerationError("boom"))
        await session.generate(PROMPT)
    assert session.status.value == target

    await session.reset()

    assert session.status == SessionStatus.IDLE
    assert len(session.transcript) == 0
    assert session.conversation_handle is None
    assert session.video is None
    assert session.last_error is None
    assert backend.open == set()
    assert not video.path.exists() or target == "idle"


async def test_reset_during_processing_discards_the_reply(session, backend, make_video):
    backend.delay = 0.05
    backend.script("Too late.")
    await session.select_file(make_video())

    task = asyncio.create_task(session.generate(PROMPT))
    await asyncio.sleep(0.01)
    assert session.status == SessionStatus.PROCESSING

    await session.reset()
    await task

    assert session.status == SessionStatus.IDLE
    assert len(session.transcript) == 0
    assert backend.open == set()


async def test_cancelled_generation_returns_to_file_selected(session, backend, make_video):
    video = make_video()
    backend.delay = 1
    await session.select_file(video)

    task = asyncio.create_task(session.generate(PROMPT))
    await asyncio.sleep(0.01)
    assert session.status == SessionStatus.PROCESSING
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert session.status == SessionStatus.FILE_SELECTED
    assert session.video == video
    assert video.path.exists()
    assert backend.open == set()

    backend.delay = 0
    backend.script("Described after retry.")
    await session.generate(PROMPT)
    assert session.latest_description == "Described after retry."


async def test_cancelled_refinement_rolls_back(session, backend, make_video):
    await _succeeded(session, backend, make_video)
    backend.delay = 1

    task = asyncio.create_task(session.refine("make it funnier"))
    await asyncio.sleep(0.01)
    assert session.status == SessionStatus.REFINING
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert session.status == SessionStatus.SUCCESS
    assert len(session.transcript) == 2
    assert session.latest_description == "A dog runs on a beach."
    assert session.conversation_handle == "conv-1"
