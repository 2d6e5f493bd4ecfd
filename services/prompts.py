"""Prompt helpers for video description generation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from models.profile import Profile
from models.session_models import DetailLevel

SYSTEM_INSTRUCTION = (
	"You are an expert in creating visual descriptions for the blind and visually impaired community.\n"
	"Analyze videos and generate detailed, objective descriptions.\n"
	"- Follow the video's timeline chronologically.\n"
	"- Describe the setting, characters (if any), actions, and key visual cues.\n"
	"- ALWAYS include and transcribe any on-screen text, captions, or titles that appear. "
	"This is a critical requirement.\n"
	"- Capture the mood and key visual cues.\n"
	"- The description should be clear, concise, and suitable for a social media caption or alt-text.\n"
	"- IMPORTANT: Do not include any introductory phrases or sentences. "
	"Begin the description directly with the visual information."
)

BASE_REQUEST = "Please generate the description for this video."

BRIEF_CLAUSE = (
	"\n- Keep the description brief and to the point, summarizing the key visual information concisely."
)
DETAILED_CLAUSE = (
	"\n- Provide a highly detailed, comprehensive, scene-by-scene description, "
	"capturing as much visual information as possible."
)
PROFILES_INTRO = (
	"\n\n- The following people may appear in the video. Please identify them by name if you can, "
	"using their provided description and pronouns:\n"
)


@dataclass(frozen=True)
class AssembledPrompt:
	system_instruction: str
	user_instruction: str


def detail_clause(detail_level: DetailLevel) -> str:
	"""Return the clause for a detail level; `average` adds nothing."""
	if detail_level == DetailLevel.BRIEF:
		return BRIEF_CLAUSE
	if detail_level == DetailLevel.DETAILED:
		return DETAILED_CLAUSE
	return ""


def focus_clause(focus_tags: Iterable[str]) -> str:
	tags = list(focus_tags)
	if not tags:
		return ""
	return (
		f"\n- The main focus of the video is on the following aspects: {', '.join(tags)}. "
		"Pay special attention to these."
	)


def profile_line(profile: Profile) -> str:
	line = f"  - Name: {profile.name}"
	if profile.pronouns and profile.pronouns.strip():
		line += f", Pronouns: {profile.pronouns}"
	return line + f", Description: {profile.description}\n"


def profiles_block(profiles: Iterable[Profile]) -> str:
	lines: List[str] = [profile_line(p) for p in profiles]
	if not lines:
		return ""
	return PROFILES_INTRO + "".join(lines)


def assemble(
	detail_level: DetailLevel,
	focus_tags: Iterable[str],
	profiles: Iterable[Profile],
) -> AssembledPrompt:
	"""Build the system and user instructions for the first generation turn.

	Profiles are emitted in the order given, which callers keep equal to
	profile store order. The result depends only on the arguments.
	"""
	user_instruction = (
		BASE_REQUEST
		+ detail_clause(DetailLevel(detail_level))
		+ focus_clause(focus_tags)
		+ profiles_block(profiles)
	)
	return AssembledPrompt(system_instruction=SYSTEM_INSTRUCTION, user_instruction=user_instruction)
