"""Prompt construction for schedule generation."""

from __future__ import annotations

import json
from datetime import date
from typing import Sequence

from postplan.schedule.accounts import AccountProfile
from postplan.schedule.request import MULTI_FRAME_TYPES, PlannedDay, SlotConfig

POST_TYPE_LABELS: dict[str, str] = {
    "post": "Static post",
    "reel": "Reel",
    "carousel": "Carousel",
    "story": "Story",
    "story_sequence": "Story sequence",
}

TYPE_INSTRUCTIONS = """\
- STATIC POST: exactly one still image. Never mention slides or swiping. Provide "visual" with
  headline (max 8 words), subline (max 12 words or null), color_palette (3-4 hex codes),
  fonts {headline, body} (Google Fonts), image_description (one single image), background.
- CAROUSEL: several slides telling one story. Provide "visual" as for a static post plus
  "slides": exactly the requested number of {slide_number, headline, description, image_description}.
- STORY: one vertical 9:16 image. Provide "visual" as for a static post, without slides.
- STORY SEQUENCE: several vertical 9:16 frames. Provide "visual" with "slides" exactly like a
  carousel, every image_description in 9:16.
- REEL: provide "script" (no "visual") with duration (e.g. "45s"), hook (first 3 seconds),
  scenes [{time, visual, narration, text_overlay or null}], cta.
The "type" field must always match the slot type exactly."""

OUTPUT_EXAMPLE = {
    "schedule": [
        {
            "date": "2026-02-23",
            "day_label": "Monday, February 23",
            "posts": [
                {
                    "type": "post",
                    "time": "09:00",
                    "theme": "theme title (max 60 chars)",
                    "caption": "ready-to-publish caption with emojis and hashtags",
                    "content_pillar": "which content pillar",
                    "seasonal_hook": None,
                    "visual": {
                        "headline": "Headline for the designer",
                        "subline": None,
                        "color_palette": ["#1A1A2E", "#16213E", "#0F3460"],
                        "fonts": {"headline": "Playfair Display", "body": "Inter"},
                        "image_description": "One single image",
                        "background": "Soft gradient from #1A1A2E to #0F3460",
                    },
                },
                {
                    "type": "reel",
                    "time": "18:00",
                    "theme": "theme title (max 60 chars)",
                    "caption": "caption",
                    "content_pillar": "which content pillar",
                    "seasonal_hook": None,
                    "script": {
                        "duration": "45s",
                        "hook": "Opening line",
                        "scenes": [
                            {
                                "time": "0-3s",
                                "visual": "What is on screen",
                                "narration": "What is said",
                                "text_overlay": None,
                            }
                        ],
                        "cta": "Closing call to action",
                    },
                },
            ],
        }
    ]
}


def describe_slot(slot: SlotConfig) -> str:
    label = POST_TYPE_LABELS[slot.type]
    if slot.type in MULTI_FRAME_TYPES and slot.slides:
        label = f"{label} ({slot.slides} frames)"
    if slot.fixed_time:
        return f'{label} -> FIXED time {slot.fixed_time} (use exactly this value in "time")'
    return f"{label} -> time chosen by you (best time for this format and audience)"


def describe_days(days: Sequence[PlannedDay]) -> str:
    lines: list[str] = []
    for day in days:
        label = day.date.strftime("%A, %B %d")
        lines.append(f"- {label} ({day.iso_date}):")
        lines.extend(f"  * {describe_slot(slot)}" for slot in day.slots)
    return "\n".join(lines)


def describe_profile(account: AccountProfile) -> str:
    pillars = ", ".join(account.content_pillars) or "general"
    palette = [color for color in account.color_palette if color]
    lines = [
        f"- Username: @{account.username}",
        f"- Niche: {account.niche or 'general'}",
        f"- Target audience: {account.target_audience or 'general'}",
        f"- Brand voice: {account.brand_voice}",
        f"- Main goal: {account.main_goal}",
        f"- Content pillars: {pillars}",
        f"- Strategic notes: {account.strategic_notes or 'none'}",
    ]
    if palette:
        lines.append(
            f"- Brand palette: {', '.join(palette)} (base every color_palette on these colours)"
        )
    else:
        lines.append("- Brand palette: not defined (pick colours matching niche and voice)")
    banned = [word for word in account.negative_words if word]
    if banned:
        lines.append(f"- FORBIDDEN words (never use them anywhere): {', '.join(banned)}")
    return "\n".join(lines)


def build_schedule_prompt(
    account: AccountProfile,
    days: Sequence[PlannedDay],
    start: date,
    *,
    array_key: str = "schedule",
) -> str:
    """Render the generation prompt for ``days``."""
    example = json.dumps(OUTPUT_EXAMPLE, indent=2, ensure_ascii=False)
    if array_key != "schedule":
        example = example.replace('"schedule"', json.dumps(array_key), 1)

    return f"""You are a content strategist and art director for Instagram, specialised in \
{account.niche or 'general content'}.

PROFILE:
{describe_profile(account)}

PERIOD: {len(days)} scheduled days starting {start.strftime('%B %d, %Y')}

POSTS TO PLAN:
{describe_days(days)}

GENERAL INSTRUCTIONS:
1. Create specific, creative content for every slot, aligned with the profile.
2. Consider seasonal dates, holidays and events relevant to the niche in this period.
3. Balance the content pillars.
4. Write every description in the "{account.brand_voice}" voice.
5. Emit the days in chronological order, one array element per day listed above.

PER TYPE:
{TYPE_INSTRUCTIONS}

Return ONLY valid JSON with exactly this structure:
{example}"""


__all__ = ["POST_TYPE_LABELS", "build_schedule_prompt", "describe_days", "describe_slot"]
