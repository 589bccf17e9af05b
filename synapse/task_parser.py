"""
Natural-language task parser.

Turns quick-capture text such as "Submit report tomorrow at 3pm #work urgent"
or "Meeting marketing senin jam 9 pagi" into structured fields plus a cleaned
title. English and Indonesian keywords are understood.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

# --- Patterns ---

TAG_RE = re.compile(r"(?<![\w#])#[\w-]+")

DURATION_RE = re.compile(
    r"\b(?:for\s+|selama\s+)?(\d+(?:[.,]\d+)?)\s*"
    r"(minutes|minute|mins|min|menit|m|hours|hour|hrs|hr|h|jam)\b",
    re.IGNORECASE,
)
HOUR_UNITS = {"hours", "hour", "hrs", "hr", "h", "jam"}

MERIDIEM = r"(am|pm|a\.m\.|p\.m\.|pagi|siang|sore|malam)"
TIME_KEYWORDS = {"noon": (12, 0), "midnight": (0, 0)}
TIME_KEYWORD_RE = re.compile(r"\b(?:at\s+)?(noon|midnight)\b", re.IGNORECASE)

# (keyword, days from today, label); longer phrases first
RELATIVE_DAYS: List[Tuple[str, int, str]] = [
    ("day after tomorrow", 2, "Day after tomorrow"),
    ("hari ini", 0, "Today"),
    ("today", 0, "Today"),
    ("tonight", 0, "Today"),
    ("tomorrow", 1, "Tomorrow"),
    ("tmrw", 1, "Tomorrow"),
    ("besok", 1, "Tomorrow"),
    ("besuk", 1, "Tomorrow"),
    ("lusa", 2, "Day after tomorrow"),
]

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

# Python weekday index, Monday = 0
DAY_NAMES: Dict[str, int] = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
    "senin": 0,
    "selasa": 1,
    "rabu": 2,
    "kamis": 3,
    "jumat": 4,
    "jum'at": 4,
    "sabtu": 5,
    "minggu": 6,
}

PRIORITY_PATTERNS = [
    (re.compile(r"\b(?:high\s+priority|urgent|asap|important|penting|mendesak|p1)\b|!{2,}", re.IGNORECASE), "high"),
    (re.compile(r"\b(?:medium\s+priority|normal\s+priority|p2)\b", re.IGNORECASE), "medium"),
    (re.compile(r"\b(?:low\s+priority|whenever|someday|p3)\b", re.IGNORECASE), "low"),
]

TAG_KEYWORDS: Dict[str, List[str]] = {
    "#Work": ["meeting", "rapat", "call", "zoom", "project", "deadline", "kerja", "kantor", "client",
              "klien", "presentasi", "presentation", "laporan", "report", "email"],
    "#Personal": ["olahraga", "gym", "workout", "belanja", "groceries", "shopping", "makan", "tidur",
                  "nonton", "baca", "buku", "laundry"],
    "#Health": ["dokter", "doctor", "dentist", "obat", "medicine", "vitamin", "checkup", "cek kesehatan",
                "rumah sakit", "hospital", "klinik", "clinic", "therapy"],
    "#Study": ["belajar", "study", "tugas", "kuliah", "kelas", "class", "lecture", "ujian", "exam", "quiz",
               "homework"],
    "#Social": ["teman", "friend", "friends", "sahabat", "keluarga", "family", "hangout", "ketemu",
                "nongkrong", "party"],
}

# Words that may follow a bare "at 9" and still make it a clock time;
# "look at 3 options" is a count.
AT_FOLLOWERS = sorted(
    [k for k, _, _ in RELATIVE_DAYS]
    + list(DAY_NAMES)
    + ["on", "by", "this", "next", "for", "selama", "with", "sharp", "o'clock"],
    key=len,
    reverse=True,
)
AT_FOLLOW = r"(?=\s*(?:$|[,;!?)]|\.(?!\d))|\s+(?:" + "|".join(re.escape(w) for w in AT_FOLLOWERS) + r")\b)"

TIME_PATTERNS = [
    # "3pm", "at 3:30 pm", "jam 9 pagi"
    re.compile(
        r"(?:\b(?:at|jam|pukul|pkl)\s*|@\s*)?\b(\d{1,2})(?:[:.](\d{2}))?\s*" + MERIDIEM + r"(?!\w)",
        re.IGNORECASE,
    ),
    # "jam 14.30", "pukul 9", "@ 10"
    re.compile(r"(?:\b(?:jam|pukul|pkl)\s*|@\s*)\b(\d{1,2})(?:[:.](\d{2}))?\b", re.IGNORECASE),
    # "at 9:30", "at 15"
    re.compile(r"\bat\s*(\d{1,2})[:.](\d{2})\b", re.IGNORECASE),
    re.compile(r"\bat\s*(1[3-9]|2[0-3])()\b", re.IGNORECASE),
    # "at 9 tomorrow", "at 9."
    re.compile(r"\bat\s*(\d{1,2})()" + AT_FOLLOW, re.IGNORECASE),
    # "14:00", "9.30"
    re.compile(r"\b(\d{1,2})[:.](\d{2})\b"),
]

DEFAULT_DURATION = 25  # one pomodoro
MAX_DURATION_MINUTES = 7 * 24 * 60


@dataclass
class ParsedTask:
    title: str
    tags: List[str] = field(default_factory=list)
    duration: Optional[int] = None
    estimated_duration: int = DEFAULT_DURATION
    date: Optional[date] = None
    date_text: Optional[str] = None
    time: Optional[str] = None
    time_text: Optional[str] = None
    priority: Optional[str] = None

    @property
    def has_scheduled_time(self) -> bool:
        """True when the task should be synced to a calendar."""
        return self.date is not None and self.time is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "tags": list(self.tags),
            "duration": self.duration,
            "estimatedDuration": self.estimated_duration,
            "date": self.date.isoformat() if self.date else None,
            "dateText": self.date_text,
            "time": self.time,
            "timeText": self.time_text,
            "priority": self.priority,
            "hasScheduledTime": self.has_scheduled_time,
        }


# --- Helpers ---

def _remove(text: str, pattern: re.Pattern) -> str:
    return pattern.sub(" ", text)


def _clean_title(text: str) -> str:
    title = re.sub(r"\s+", " ", text)
    title = re.sub(r"^[\s,.;:\-]+|[\s,.;:\-]+$", "", title)
    if title:
        title = title[0].upper() + title[1:]
    return title


def _to_24h(hours: int, minutes: int, period: Optional[str]) -> Optional[Tuple[int, int]]:
    if minutes > 59:
        return None
    period = (period or "").lower()
    if period in ("am", "a.m.", "pm", "p.m."):
        if not 1 <= hours <= 12:
            return None
        if period.startswith("a"):
            hours = 0 if hours == 12 else hours
        elif hours < 12:
            hours += 12
    elif period == "pagi":
        hours = 0 if hours == 12 else hours
    elif period in ("sore", "malam"):
        if hours < 12:
            hours += 12
    elif period == "siang":
        if hours < 11:
            hours += 12
    if hours > 23:
        return None
    return hours, minutes


def _format_time_text(hours: int, minutes: int) -> str:
    suffix = "AM" if hours < 12 else "PM"
    h12 = hours % 12 or 12
    return f"{h12:02d}:{minutes:02d} {suffix}"


def _relative_day_re(keyword: str) -> re.Pattern:
    return re.compile(r"(?:\b(?:by|on)\s+)?\b" + re.escape(keyword) + r"\b", re.IGNORECASE)


def _day_name_re(name: str) -> re.Pattern:
    return re.compile(r"(?:\b(?:on|by|this|next)\s+)?\b" + re.escape(name) + r"\b", re.IGNORECASE)


RELATIVE_DAY_RES = [(_relative_day_re(k), days, label) for k, days, label in RELATIVE_DAYS]
DAY_NAME_RES = [(_day_name_re(name), index) for name, index in DAY_NAMES.items()]


def next_weekday(day_index: int, from_date: date) -> date:
    """Next occurrence of the weekday strictly after from_date."""
    days_ahead = day_index - from_date.weekday()
    if days_ahead <= 0:
        days_ahead += 7
    return from_date + timedelta(days=days_ahead)


def infer_tag(text: str) -> Optional[str]:
    lower = text.lower()
    for tag, keywords in TAG_KEYWORDS.items():
        for keyword in keywords:
            if re.search(r"\b" + re.escape(keyword) + r"\b", lower):
                return tag
    return None


def infer_duration(text: str, tags: List[str]) -> int:
    lower = text.lower()
    if re.search(r"\b(?:meeting|rapat)\b", lower):
        return 60
    if re.search(r"\b(?:call|zoom)\b", lower):
        return 30
    tag_set = {t.lower() for t in tags}
    if "#work" in tag_set or "#study" in tag_set:
        return 45
    if "#health" in tag_set:
        return 30
    return DEFAULT_DURATION


# --- Extractors ---
# Each returns (value, working text with that category stripped).

def _extract_tags(text: str) -> Tuple[List[str], str]:
    return TAG_RE.findall(text), _remove(text, TAG_RE)


def _extract_duration(text: str) -> Tuple[Optional[int], str]:
    m = DURATION_RE.search(text)
    if not m:
        return None, text
    value = float(m.group(1).replace(",", "."))
    minutes = value * 60 if m.group(2).lower() in HOUR_UNITS else value
    # an unbounded number is part of the title, not a duration
    if not math.isfinite(minutes) or minutes > MAX_DURATION_MINUTES:
        return None, text
    return int(round(minutes)), _remove(text, DURATION_RE)


def _extract_time(text: str) -> Tuple[Optional[Tuple[int, int]], str]:
    found = None
    for pattern in TIME_PATTERNS:
        for m in pattern.finditer(text):
            period = m.group(3) if pattern.groups >= 3 else None
            found = _to_24h(int(m.group(1)), int(m.group(2) or 0), period)
            if found:
                break
        if found:
            break
    if found is None:
        m = TIME_KEYWORD_RE.search(text)
        if m:
            found = TIME_KEYWORDS[m.group(1).lower()]
    if found is None:
        return None, text
    for pattern in TIME_PATTERNS:
        text = _remove(text, pattern)
    return found, _remove(text, TIME_KEYWORD_RE)


def _extract_date(text: str, today: date) -> Tuple[Optional[Tuple[date, str]], str]:
    found = None
    for pattern, days, label in RELATIVE_DAY_RES:
        if pattern.search(text):
            found = (today + timedelta(days=days), label)
            break
    if found is None:
        for pattern, day_index in DAY_NAME_RES:
            if pattern.search(text):
                found = (next_weekday(day_index, today), WEEKDAY_NAMES[day_index])
                break
    if found is None:
        return None, text
    for pattern, _, _ in RELATIVE_DAY_RES:
        text = _remove(text, pattern)
    for pattern, _ in DAY_NAME_RES:
        text = _remove(text, pattern)
    return found, text


def _extract_priority(text: str) -> Tuple[Optional[str], str]:
    found = None
    for pattern, level in PRIORITY_PATTERNS:
        if pattern.search(text):
            found = level
            break
    if found is None:
        return None, text
    for pattern, _ in PRIORITY_PATTERNS:
        text = _remove(text, pattern)
    return found, text


def _strip_fields(text: str, today: date) -> str:
    _, text = _extract_tags(text)
    _, text = _extract_duration(text)
    _, text = _extract_time(text)
    _, text = _extract_date(text, today)
    _, text = _extract_priority(text)
    return text


# --- Public API ---

def parse_task_input(text: str, now: Optional[datetime] = None) -> ParsedTask:
    """Parse free-text task input into a ParsedTask.

    Categories are applied in order (tags, duration, time, date, priority);
    within a category the first matching pattern wins. Fields that do not
    match are left as None.
    """
    raw = (text or "").strip()
    today = (now or datetime.now()).date()

    tags, working = _extract_tags(raw)
    duration, working = _extract_duration(working)
    clock, working = _extract_time(working)
    when, working = _extract_date(working, today)
    priority, working = _extract_priority(working)

    # Stripping can expose text another category would match; settle it
    # so the returned title parses back to itself.
    title = _clean_title(working)
    for _ in range(5):
        again = _clean_title(_strip_fields(title, today))
        if again == title:
            break
        title = again

    if not tags:
        inferred = infer_tag(raw)
        if inferred:
            tags = [inferred]

    parsed = ParsedTask(
        title=title or raw,
        tags=tags,
        duration=duration,
        estimated_duration=duration if duration else infer_duration(raw, tags),
        priority=priority,
    )
    if clock:
        hours, minutes = clock
        parsed.time = f"{hours:02d}:{minutes:02d}"
        parsed.time_text = _format_time_text(hours, minutes)
    if when:
        parsed.date, parsed.date_text = when
    return parsed
