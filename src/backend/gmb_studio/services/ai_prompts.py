"""Prompt builders and canned fallback copy for the AI endpoints."""
from __future__ import annotations

import re
from typing import Optional

DEFAULT_TOPIC = "your business update"

_BULLET_RE = re.compile(r"^[\-*\d\.\s]+")
_NUMBERED_RE = re.compile(r"^\d+\.\s*")


def post_prompts(topic: str, tone: str, language: str) -> tuple[str, str]:
    if language == "Arabic":
        system = f"أنت كاتب محتوى موجز لمنشورات Google Business. اكتب 2-3 نسخ قصيرة بنبرة {tone}."
        user = f"الموضوع: {topic}. اجعل النص بسيطًا وجذابًا مع رموز تعبيرية مناسبة."
    else:
        system = f"You are a concise copywriter for Google Business posts. Write 2-3 short variants in a {tone} tone."
        user = f"Topic: {topic}. Keep it simple and engaging with suitable emojis."
    return system, user


def reply_prompts(
    review: str,
    tone: str,
    language: str,
    customer_name: str = "",
    rating: Optional[int] = None,
) -> tuple[str, str]:
    review = review or "—"
    if language == "Arabic":
        system = f"أنت مساعد يكتب ردود موجزة ولبقة على مراجعات العملاء بنبرة {tone}. أعط 3 اقتراحات قصيرة."
        user = f"المراجعة: {review}"
        if customer_name:
            user += f"\nالعميل: {customer_name}"
        if rating:
            user += f"\nالتقييم: {rating}"
    else:
        system = (
            f"You are an assistant writing concise and polite replies to customer reviews in a {tone} tone. "
            "Provide 3 short suggestions."
        )
        user = f"Review: {review}"
        if customer_name:
            user += f"\nCustomer: {customer_name}"
        if rating:
            user += f"\nRating: {rating}"
    return system, user


def hashtag_prompt(caption: str, max_hashtags: int) -> str:
    return f"""Generate {max_hashtags} relevant hashtags for this social media post:

"{caption}"

Requirements:
- Mix of popular and niche hashtags
- Relevant to the content
- No spaces in hashtags
- Return only the hashtags, one per line, with # symbol

Hashtags:"""


def content_ideas_prompt(business_type: str, month: str) -> str:
    return f"""Generate 10 content ideas for a {business_type} business for {month}.

Format: Return a numbered list (1-10) of specific, actionable content ideas.
Each idea should be one sentence.

Content Ideas:"""


def split_suggestions(content: str, limit: int = 3) -> list[str]:
    parts = [_BULLET_RE.sub("", line).strip() for line in re.split(r"\n+", content or "")]
    parts = [part for part in parts if part][:limit]
    if parts:
        return parts
    whole = (content or "").strip()
    return [whole] if whole else []


def parse_hashtags(content: str, limit: int) -> list[str]:
    lines = (line.strip() for line in (content or "").split("\n"))
    return [line for line in lines if line.startswith("#")][:limit]


def parse_numbered_list(content: str) -> list[str]:
    ideas = []
    for line in (content or "").split("\n"):
        line = line.strip()
        if not _NUMBERED_RE.match(line):
            continue
        idea = _NUMBERED_RE.sub("", line).strip()
        if idea:
            ideas.append(idea)
    return ideas


def fallback_captions(topic: str, language: str) -> list[str]:
    if language == "Arabic":
        return [
            f"لا تفوّت عروض نهاية الأسبوع لدينا! {topic}",
            f"تحديث جديد: {topic} — زورونا اليوم!",
            f"نخدمكم يوميًا. {topic} ✨",
        ]
    return [
        f"Don't miss our weekend special! {topic} just for you.",
        f"New update: {topic} — come check it out today!",
        f"We help you every day. {topic} ✨",
    ]


def fallback_suggestions(customer_name: str, rating: Optional[int], language: str) -> list[str]:
    if language == "Arabic":
        name = f" {customer_name}" if customer_name else ""
        stars = f" {rating} نجوم" if rating else ""
        return [
            f"شكراً لك{name}! نسعد بأنك قيّمتنا{stars}. نرحب بك دائماً!",
            f"نعتذر عن أي إزعاج{name}. شكرًا لملاحظاتك وسنعمل على التحسين.",
            f"شاكرين وقتك وتعليقك{name}. رضاك أولوية لنا دائمًا.",
        ]
    name = f", {customer_name}" if customer_name else ""
    stars = f"{rating}-star " if rating else ""
    return [
        f"Thank you{name}! We're glad about your {stars}experience. You're always welcome!",
        f"We're sorry for any inconvenience{name}. We appreciate your feedback and will improve.",
        f"Thanks for your time{name}. Your satisfaction is always our priority.",
    ]
